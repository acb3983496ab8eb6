from __future__ import annotations

import logging
import threading
import uuid

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from linkshelf.client.container import BookmarkContainer
from linkshelf.client.errors import FeedExpired, SessionInvalid, StoreError
from linkshelf.client.models import Created, Deleted


logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_ACTIVE = "active"
STATE_CLOSED = "closed"

_SCHEDULER_START_LOCK = threading.Lock()


class ChangeFeedListener:
    """Applies the user's change feed to a container.

    One listener backs one subscription: ``subscribe`` acquires it and
    ``unsubscribe`` releases it, once. Events are applied in the order the
    feed delivers them.

    A shared scheduler may be passed in; the listener then only adds and
    removes its own polling job and leaves the scheduler running. When the
    feed head cannot be read at subscribe time, or the feed reports that
    events after the cursor were pruned, the listener restarts from the
    current head and reloads the list through ``refresher``.
    """

    def __init__(
        self,
        store,
        container: BookmarkContainer,
        owner,
        poll_interval: float = 2.0,
        batch_size: int = 200,
        scheduler=None,
        refresher=None,
    ):
        self.store = store
        self.container = container
        self.owner = owner
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.refresher = refresher
        self.cursor: int | None = None
        self._scheduler = scheduler
        self._owns_scheduler = False
        self._job = None
        self._state = STATE_IDLE
        self._state_lock = threading.Lock()
        self._poll_lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._state == STATE_ACTIVE

    @property
    def synced(self) -> bool:
        return self.active and self.cursor is not None

    def subscribe(self, start_polling: bool = True) -> None:
        with self._state_lock:
            if self._state != STATE_IDLE:
                raise RuntimeError(f"change feed subscription is {self._state}")
            try:
                self.cursor = self.store.feed_cursor()
            except SessionInvalid:
                raise
            except StoreError as exc:
                logger.warning(
                    "Change feed head unavailable for user %s; will retry on "
                    "next poll: %s",
                    self.owner,
                    exc,
                )
                self.cursor = None
            self._state = STATE_ACTIVE

        if start_polling:
            self._schedule()
        logger.debug(
            "Subscribed to change feed for user %s at %s", self.owner, self.cursor
        )

    def unsubscribe(self) -> bool:
        with self._state_lock:
            was_active = self._state == STATE_ACTIVE
            self._state = STATE_CLOSED

        if not was_active:
            return False
        self._unschedule()
        logger.debug("Released change feed for user %s", self.owner)
        return True

    def poll(self) -> int:
        if not self.active:
            return 0

        processed = 0
        with self._poll_lock:
            if self.cursor is None and not self._restart_from_head():
                return 0

            while self.active:
                before = self.cursor
                try:
                    page = self.store.pull_changes(self.cursor, self.batch_size)
                except FeedExpired as exc:
                    logger.warning(
                        "Change feed for user %s expired at cursor %s: %s",
                        self.owner,
                        self.cursor,
                        exc,
                    )
                    self._restart_from_head(exc.cursor)
                    break
                except StoreError as exc:
                    logger.warning(
                        "Change feed poll failed for user %s at cursor %s: %s",
                        self.owner,
                        self.cursor,
                        exc,
                    )
                    break

                for notification in page.notifications:
                    if not self.active:
                        return processed
                    self.dispatch(notification)
                    self.cursor = max(self.cursor, notification.cursor)
                    processed += 1
                self.cursor = max(self.cursor, page.cursor)

                if not page.has_more or self.cursor <= before:
                    break
        return processed

    def dispatch(self, notification) -> bool:
        if notification.owner is not None and str(notification.owner) != str(
            self.owner
        ):
            logger.warning(
                "Ignoring change for user %s on feed of user %s",
                notification.owner,
                self.owner,
            )
            return False
        if isinstance(notification, Created):
            return self.container.upsert_if_absent(notification.bookmark)
        if isinstance(notification, Deleted):
            return self.container.remove(notification.bookmark_id)
        return False

    def _restart_from_head(self, head: int | None = None) -> bool:
        if head is None:
            try:
                head = self.store.feed_cursor()
            except StoreError as exc:
                logger.warning(
                    "Change feed head still unavailable for user %s: %s",
                    self.owner,
                    exc,
                )
                return False

        # Head is read before the reload; events committed in between are
        # pulled again and absorbed by the container. The cursor only moves
        # once the reload has covered everything up to the head.
        if self.refresher is not None and not self.refresher.refresh():
            return False
        self.cursor = head
        logger.info("Change feed for user %s restarted at %s", self.owner, head)
        return True

    def _schedule(self) -> None:
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(daemon=True)
            self._owns_scheduler = True
        self._job = self._scheduler.add_job(
            self.poll,
            "interval",
            seconds=self.poll_interval,
            id=f"change_feed_poll_{uuid.uuid4().hex}",
            max_instances=1,
            coalesce=True,
        )
        with _SCHEDULER_START_LOCK:
            if not self._scheduler.running:
                self._scheduler.start()

    def _unschedule(self) -> None:
        if self._job is not None:
            try:
                self._job.remove()
            except JobLookupError:
                logger.debug("Polling job for user %s already gone", self.owner)
            self._job = None
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
