from __future__ import annotations

import logging

from linkshelf.client.container import BookmarkContainer
from linkshelf.client.errors import SessionInvalid
from linkshelf.client.listener import ChangeFeedListener
from linkshelf.client.mutations import BookmarkMutations
from linkshelf.client.models import Bookmark
from linkshelf.client.presentation import count_label
from linkshelf.client.refresh import RefreshLoader


logger = logging.getLogger(__name__)


class BookmarkView:
    """A live bookmark list for the signed-in user.

    ``open`` resolves the user, subscribes to the change feed and then always
    reloads from the store, even when an initial snapshot was supplied.
    ``close`` releases the subscription. Use it as a context manager::

        with BookmarkView(store) as view:
            view.add("Docs", "example.com")
    """

    def __init__(
        self,
        store,
        initial: list[Bookmark] | None = None,
        poll_interval: float = 2.0,
        batch_size: int = 200,
        start_polling: bool = True,
        scheduler=None,
    ):
        self.store = store
        self.initial = initial
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.start_polling = start_polling
        self.scheduler = scheduler
        self.user = None
        self.container: BookmarkContainer | None = None
        self.listener: ChangeFeedListener | None = None
        self.refresher: RefreshLoader | None = None
        self.mutations: BookmarkMutations | None = None
        self._state = "idle"

    @classmethod
    def from_config(cls, store, config, **kwargs) -> BookmarkView:
        kwargs.setdefault("poll_interval", config.CHANGE_FEED_POLL_SECONDS)
        kwargs.setdefault("batch_size", config.CHANGE_FEED_BATCH_SIZE)
        return cls(store, **kwargs)

    @property
    def is_open(self) -> bool:
        return self._state == "open"

    @property
    def live(self) -> bool:
        return self.listener is not None and self.listener.active

    def open(self) -> BookmarkView:
        if self._state != "idle":
            raise RuntimeError(f"bookmark view is {self._state}")

        user = self.store.current_user()
        if user is None:
            raise SessionInvalid("no authenticated user")
        self.user = user

        self.container = BookmarkContainer(owner=user.id)
        self.refresher = RefreshLoader(self.store, self.container, user.id)
        self.mutations = BookmarkMutations(
            self.store, self.container, self.refresher, user.id
        )
        self.listener = ChangeFeedListener(
            self.store,
            self.container,
            user.id,
            poll_interval=self.poll_interval,
            batch_size=self.batch_size,
            scheduler=self.scheduler,
            refresher=self.refresher,
        )

        try:
            if self.initial:
                self.container.replace_all(self.initial)
            self.listener.subscribe(start_polling=self.start_polling)
            self.refresher.refresh()
        except BaseException:
            self.listener.unsubscribe()
            self._state = "closed"
            raise
        self._state = "open"
        logger.debug(
            "Opened bookmark view for user %s with %s records",
            user.id,
            len(self.container),
        )
        return self

    def close(self) -> None:
        if self.listener is not None:
            self.listener.unsubscribe()
        self._state = "closed"

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def bookmarks(self) -> tuple[Bookmark, ...]:
        if self.container is None:
            return ()
        return self.container.snapshot()

    def add(self, title: str, target: str, note: str = "") -> Bookmark:
        return self._require_open().create(title, target, note)

    def delete(self, bookmark_id: str) -> bool:
        return self._require_open().delete(bookmark_id)

    def refresh(self) -> bool:
        self._require_open()
        return self.refresher.refresh()

    def poll(self) -> int:
        self._require_open()
        return self.listener.poll()

    def summary(self) -> str:
        return count_label(len(self.bookmarks))

    def _require_open(self) -> BookmarkMutations:
        if not self.is_open:
            raise RuntimeError("bookmark view is not open")
        return self.mutations
