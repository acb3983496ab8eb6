from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func

from linkshelf.extensions import db
from linkshelf.models import (
    CHANGE_CREATED,
    CHANGE_DELETED,
    Bookmark,
    ChangeEvent,
    FeedWatermark,
    User,
    utcnow,
)


class CursorExpired(Exception):
    """Raised when events after a cursor have already been pruned."""

    def __init__(self, since: int, pruned_through: int, cursor: int):
        super().__init__(
            f"events after cursor {since} were pruned through {pruned_through}"
        )
        self.since = since
        self.pruned_through = pruned_through
        self.cursor = cursor


def feed_lock_query(user_id: int):
    return User.query.filter_by(id=user_id).with_for_update()


def log_change_event(user_id: int, action: str, bookmark_id: str, payload: dict):
    # Holding the owner row until commit keeps cursor order equal to commit
    # order for that user. SQLite has a single writer and ignores the lock.
    feed_lock_query(user_id).first()
    event = ChangeEvent(
        user_id=user_id,
        action=action,
        bookmark_id=bookmark_id,
        payload=payload,
    )
    db.session.add(event)
    return event


def create_bookmark(user_id: int, title: str, url: str, note: str) -> Bookmark:
    bookmark = Bookmark(user_id=user_id, title=title, url=url, note=note)
    db.session.add(bookmark)
    db.session.flush()
    log_change_event(user_id, CHANGE_CREATED, bookmark.id, bookmark.as_dict())
    db.session.commit()
    return bookmark


def delete_bookmark(bookmark: Bookmark) -> None:
    log_change_event(
        bookmark.user_id,
        CHANGE_DELETED,
        bookmark.id,
        {"id": bookmark.id, "owner": bookmark.user_id},
    )
    db.session.delete(bookmark)
    db.session.commit()


def pruned_through(user_id: int) -> int:
    watermark = db.session.get(FeedWatermark, user_id)
    if not watermark:
        return 0
    return watermark.pruned_through


def current_cursor(user_id: int) -> int:
    latest = (
        db.session.query(func.max(ChangeEvent.id))
        .filter(ChangeEvent.user_id == user_id)
        .scalar()
    )
    return max(latest or 0, pruned_through(user_id))


def list_changes(user_id: int, since: int, limit: int) -> dict:
    watermark = pruned_through(user_id)
    if since < watermark:
        raise CursorExpired(since, watermark, current_cursor(user_id))

    events = (
        ChangeEvent.query.filter_by(user_id=user_id)
        .filter(ChangeEvent.id > since)
        .order_by(ChangeEvent.id.asc())
        .limit(limit)
        .all()
    )
    latest_cursor = since
    if events:
        latest_cursor = events[-1].id
    return {
        "events": [event.as_dict() for event in events],
        "cursor": latest_cursor,
        "has_more": len(events) == limit,
    }


def prune_change_events(retention_hours: int) -> int:
    cutoff = utcnow() - timedelta(hours=retention_hours)
    expired = (
        db.session.query(ChangeEvent.user_id, func.max(ChangeEvent.id))
        .filter(ChangeEvent.created_at < cutoff)
        .group_by(ChangeEvent.user_id)
        .all()
    )
    for user_id, highest_id in expired:
        watermark = db.session.get(FeedWatermark, user_id)
        if not watermark:
            watermark = FeedWatermark(user_id=user_id, pruned_through=0)
            db.session.add(watermark)
        watermark.pruned_through = max(watermark.pruned_through or 0, highest_id)

    removed = ChangeEvent.query.filter(ChangeEvent.created_at < cutoff).delete(
        synchronize_session=False
    )
    db.session.commit()
    return removed
