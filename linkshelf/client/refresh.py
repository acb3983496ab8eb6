from __future__ import annotations

import logging

from linkshelf.client.container import BookmarkContainer
from linkshelf.client.errors import StoreError


logger = logging.getLogger(__name__)


class RefreshLoader:
    """Replaces the container with the store's authoritative list."""

    def __init__(self, store, container: BookmarkContainer, owner):
        self.store = store
        self.container = container
        self.owner = owner

    def refresh(self) -> bool:
        try:
            records = self.store.list_by_owner(self.owner)
        except StoreError as exc:
            logger.warning(
                "Bookmark refresh failed for user %s; keeping %s cached: %s",
                self.owner,
                len(self.container),
                exc,
            )
            return False

        self.container.replace_all(records)
        return True
