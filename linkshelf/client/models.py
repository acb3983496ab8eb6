from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from dateutil import parser as dt_parser


ACTION_CREATED = "created"
ACTION_DELETED = "deleted"


def parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = dt_parser.isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Bookmark:
    """A saved link as acknowledged by the store.

    ``id`` and ``created_at`` are always store-assigned; ``target`` is kept
    exactly as the user entered it.
    """

    id: str
    owner: int
    title: str
    target: str
    created_at: datetime
    note: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> Bookmark:
        return cls(
            id=str(payload["id"]),
            owner=payload["owner"],
            title=payload.get("title") or "",
            target=payload.get("url") or "",
            note=payload.get("note") or "",
            created_at=parse_timestamp(payload["created_at"]),
        )


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str

    @classmethod
    def from_payload(cls, payload: dict) -> CurrentUser:
        return cls(id=payload["id"], username=payload.get("username") or "")


@dataclass(frozen=True)
class Created:
    cursor: int
    bookmark: Bookmark

    @property
    def owner(self):
        return self.bookmark.owner


@dataclass(frozen=True)
class Deleted:
    cursor: int
    bookmark_id: str
    owner: int | None = None


@dataclass
class ChangePage:
    notifications: list = field(default_factory=list)
    cursor: int = 0
    has_more: bool = False


def notification_from_event(event: dict):
    """Translate one change-feed event into a notification, or None."""
    action = (event.get("action") or "").lower()
    payload = event.get("payload") or {}
    cursor = int(event["cursor"])
    if action == ACTION_CREATED:
        return Created(cursor=cursor, bookmark=Bookmark.from_payload(payload))
    if action == ACTION_DELETED:
        bookmark_id = payload.get("id") or event.get("bookmark_id")
        return Deleted(
            cursor=cursor, bookmark_id=str(bookmark_id), owner=payload.get("owner")
        )
    return None
