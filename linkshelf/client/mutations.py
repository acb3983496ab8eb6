from __future__ import annotations

import logging
import threading

from linkshelf.client.container import BookmarkContainer
from linkshelf.client.errors import StoreError, SubmissionInProgress, ValidationError
from linkshelf.client.models import Bookmark
from linkshelf.client.refresh import RefreshLoader


logger = logging.getLogger(__name__)


def _clean(value) -> str:
    return (value or "").strip()


class BookmarkMutations:
    """Create and delete bookmarks on behalf of the user.

    Creates wait for the store to mint the id before touching the container.
    Deletes remove the record first and fall back to a full refresh when the
    store refuses.
    """

    def __init__(
        self,
        store,
        container: BookmarkContainer,
        refresher: RefreshLoader,
        owner,
    ):
        self.store = store
        self.container = container
        self.refresher = refresher
        self.owner = owner
        self._lock = threading.Lock()
        self._submitting = False
        self._deleting: set[str] = set()

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def is_deleting(self, bookmark_id: str) -> bool:
        return bookmark_id in self._deleting

    def create(self, title: str, target: str, note: str = "") -> Bookmark:
        title, target, note = _clean(title), _clean(target), _clean(note)
        missing = tuple(
            name for name, value in (("title", title), ("target", target)) if not value
        )
        if missing:
            raise ValidationError(f"{', '.join(missing)} required", fields=missing)

        with self._lock:
            if self._submitting:
                raise SubmissionInProgress("a bookmark is already being saved")
            self._submitting = True

        try:
            record = self.store.create(title, target, note, self.owner)
        finally:
            self._submitting = False

        self.container.upsert_if_absent(record)
        return record

    def delete(self, bookmark_id: str) -> bool:
        with self._lock:
            if bookmark_id in self._deleting:
                return False
            self._deleting.add(bookmark_id)

        try:
            self.container.remove(bookmark_id)
            try:
                self.store.delete(bookmark_id)
            except StoreError as exc:
                logger.warning(
                    "Delete of bookmark %s failed, resynchronizing: %s",
                    bookmark_id,
                    exc,
                )
                self.refresher.refresh()
                return False
            return True
        finally:
            with self._lock:
                self._deleting.discard(bookmark_id)
