import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def _optional_float(name: str) -> float | None:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return None
    return float(raw)


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "default-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'linkshelf.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "1") == "1"
    CHANGE_FEED_RETENTION_HOURS = int(
        os.environ.get("CHANGE_FEED_RETENTION_HOURS", "72")
    )
    CHANGE_FEED_PRUNE_INTERVAL_MINUTES = int(
        os.environ.get("CHANGE_FEED_PRUNE_INTERVAL_MINUTES", "60")
    )
    CHANGE_FEED_MAX_PAGE = int(os.environ.get("CHANGE_FEED_MAX_PAGE", "500"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SCHEDULER_ENABLED = False


class ClientConfig:
    API_URL = os.environ.get("LINKSHELF_API_URL", "http://127.0.0.1:8072/api/v1")
    API_TOKEN = os.environ.get("LINKSHELF_API_TOKEN", "")
    CHANGE_FEED_POLL_SECONDS = float(
        os.environ.get("CHANGE_FEED_POLL_SECONDS", "2")
    )
    CHANGE_FEED_BATCH_SIZE = int(os.environ.get("CHANGE_FEED_BATCH_SIZE", "200"))
    STORE_REQUEST_TIMEOUT = _optional_float("STORE_REQUEST_TIMEOUT")
