import re
from datetime import datetime


_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def ensure_protocol(target: str) -> str:
    if not _SCHEME_RE.match(target):
        return f"https://{target}"
    return target


def format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def count_label(count: int) -> str:
    suffix = "" if count == 1 else "s"
    return f"{count} bookmark{suffix} saved"


def render_line(bookmark) -> str:
    href = ensure_protocol(bookmark.target)
    line = f"{bookmark.title} <{href}> {format_date(bookmark.created_at)}"
    if bookmark.note:
        line = f"{line}\n    {bookmark.note}"
    return line
