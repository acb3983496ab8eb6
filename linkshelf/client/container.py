from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

from linkshelf.client.models import Bookmark


logger = logging.getLogger(__name__)


class BookmarkContainer:
    """The one list of bookmarks a view shows.

    Holds records newest first with at most one record per id. The change
    feed, the mutation initiator and the refresh loader all write through the
    three operations below; each of them is safe to repeat, which is what lets
    the same creation or deletion be reported by more than one source.
    """

    def __init__(self, owner=None):
        self.owner = owner
        self._items: list[Bookmark] = []
        self._lock = threading.RLock()
        self._observers: list[Callable[[tuple[Bookmark, ...]], None]] = []

    def upsert_if_absent(self, record: Bookmark) -> bool:
        if not self._owned(record):
            logger.warning(
                "Refusing bookmark %s owned by %s (view owner %s)",
                record.id,
                record.owner,
                self.owner,
            )
            return False

        with self._lock:
            if any(item.id == record.id for item in self._items):
                logger.debug("Bookmark %s already present; skipping", record.id)
                return False

            position = len(self._items)
            for index, item in enumerate(self._items):
                if item.created_at <= record.created_at:
                    position = index
                    break
            self._items.insert(position, record)
            self._notify()
        return True

    def remove(self, bookmark_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self._items if item.id != bookmark_id]
            if len(remaining) == len(self._items):
                return False
            self._items = remaining
            self._notify()
        return True

    def replace_all(self, records: Iterable[Bookmark]) -> None:
        seen: set[str] = set()
        kept: list[Bookmark] = []
        for record in records:
            if not self._owned(record):
                logger.warning(
                    "Dropping bookmark %s owned by %s from refresh",
                    record.id,
                    record.owner,
                )
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            kept.append(record)
        kept.sort(key=lambda item: item.created_at, reverse=True)

        with self._lock:
            self._items = kept
            self._notify()

    def snapshot(self) -> tuple[Bookmark, ...]:
        with self._lock:
            return tuple(self._items)

    def get(self, bookmark_id: str) -> Bookmark | None:
        with self._lock:
            for item in self._items:
                if item.id == bookmark_id:
                    return item
        return None

    def subscribe(self, callback) -> Callable[[], None]:
        with self._lock:
            self._observers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, bookmark_id) -> bool:
        return self.get(bookmark_id) is not None

    def __iter__(self):
        return iter(self.snapshot())

    def _owned(self, record: Bookmark) -> bool:
        if self.owner is None:
            return True
        return str(record.owner) == str(self.owner)

    def _notify(self) -> None:
        current = tuple(self._items)
        for callback in list(self._observers):
            try:
                callback(current)
            except Exception:
                logger.exception("Bookmark observer %r failed", callback)
