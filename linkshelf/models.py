import hashlib
import secrets
import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from linkshelf.extensions import db, login_manager


CHANGE_CREATED = "created"
CHANGE_DELETED = "deleted"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_bookmark_id() -> str:
    return str(uuid.uuid4())


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    bookmarks = db.relationship("Bookmark", backref="user", lazy=True)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def as_dict(self):
        return {"id": self.id, "username": self.username, "is_admin": self.is_admin}


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, int(user_id))


class Bookmark(db.Model):
    __tablename__ = "bookmarks"

    id = db.Column(db.String(36), primary_key=True, default=new_bookmark_id)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(512), nullable=False)
    url = db.Column(db.Text, nullable=False)
    note = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (db.Index("ix_bookmark_user_created", "user_id", "created_at"),)

    def as_dict(self):
        return {
            "id": self.id,
            "owner": self.user_id,
            "title": self.title,
            "url": self.url,
            "note": self.note or "",
            "created_at": self.created_at.isoformat(),
        }


class ApiToken(db.Model):
    __tablename__ = "api_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    token_hash = db.Column(db.String(128), nullable=False, unique=True)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref="api_tokens")

    @staticmethod
    def issue_token(prefix="ls"):
        token = f"{prefix}_{secrets.token_urlsafe(32)}"
        token_hash = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return token, token_hash


class ChangeEvent(db.Model):
    __tablename__ = "change_events"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    action = db.Column(db.String(32), nullable=False)
    bookmark_id = db.Column(db.String(36), nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    # Cursors must never be reissued once events are pruned.
    __table_args__ = (
        db.Index("ix_change_user_cursor", "user_id", "id"),
        {"sqlite_autoincrement": True},
    )

    def as_dict(self):
        return {
            "cursor": self.id,
            "action": self.action,
            "bookmark_id": self.bookmark_id,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }


class FeedWatermark(db.Model):
    __tablename__ = "feed_watermarks"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    pruned_through = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
