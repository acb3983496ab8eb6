import time
from datetime import datetime, timedelta, timezone

from linkshelf.client.errors import FeedExpired, SessionInvalid, StoreError
from linkshelf.client.models import Bookmark, ChangePage, Created, CurrentUser, Deleted
from linkshelf.extensions import db
from linkshelf.models import ApiToken, User


T0 = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)


def make_bookmark(bookmark_id, minutes=0, owner=1, title=None, target=None, note=""):
    return Bookmark(
        id=str(bookmark_id),
        owner=owner,
        title=title or f"Bookmark {bookmark_id}",
        target=target or f"example.com/{bookmark_id}",
        note=note,
        created_at=T0 + timedelta(minutes=minutes),
    )


def wait_for(condition, timeout=3.0, interval=0.02):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


class FakeStore:
    """In-memory store and change feed for one user."""

    def __init__(self, user_id=1):
        self.user = CurrentUser(id=user_id, username=f"user{user_id}")
        self.records: dict[str, Bookmark] = {}
        self.events: list = []
        self.calls: list[tuple] = []
        self.fail_create = False
        self.fail_delete = False
        self.fail_list = False
        self.fail_pull = False
        self.fail_cursor = False
        self.pruned_through = 0
        self._next_id = 1

    def seed(self, record: Bookmark) -> Bookmark:
        self.records[record.id] = record
        return record

    def publish(self, notification_factory, *args):
        notification = notification_factory(len(self.events) + 1, *args)
        self.events.append(notification)
        return notification

    def prune(self, through=None):
        """Forget every event up to ``through`` (default: all of them)."""
        if through is None:
            through = len(self.events)
        self.pruned_through = max(self.pruned_through, through)

    def current_user(self):
        self.calls.append(("current_user",))
        if self.user is None:
            raise SessionInvalid("authentication required", status_code=401)
        return self.user

    def create(self, title, target, note, owner):
        self.calls.append(("create", title, target, note, owner))
        if self.fail_create:
            raise StoreError("store rejected create", status_code=500)
        record = Bookmark(
            id=str(self._next_id),
            owner=owner,
            title=title,
            target=target,
            note=note,
            created_at=T0 + timedelta(minutes=self._next_id),
        )
        self._next_id += 1
        self.records[record.id] = record
        self.publish(Created, record)
        return record

    def delete(self, bookmark_id):
        self.calls.append(("delete", bookmark_id))
        if self.fail_delete:
            raise StoreError("store rejected delete", status_code=500)
        if bookmark_id not in self.records:
            raise StoreError("bookmark not found", status_code=404)
        record = self.records.pop(bookmark_id)
        self.publish(Deleted, bookmark_id, record.owner)

    def list_by_owner(self, owner):
        self.calls.append(("list_by_owner", owner))
        if self.fail_list:
            raise StoreError("store unavailable", status_code=503)
        return sorted(self.records.values(), key=lambda item: item.created_at)

    def feed_cursor(self):
        self.calls.append(("feed_cursor",))
        if self.fail_cursor:
            raise StoreError("feed unavailable", status_code=503)
        return len(self.events)

    def pull_changes(self, since, limit=200):
        self.calls.append(("pull_changes", since, limit))
        if self.fail_pull:
            raise StoreError("feed unavailable", status_code=503)
        if since < self.pruned_through:
            raise FeedExpired("cursor expired", cursor=len(self.events))
        batch = self.events[since : since + limit]
        cursor = batch[-1].cursor if batch else since
        return ChangePage(
            notifications=list(batch),
            cursor=cursor,
            has_more=since + limit < len(self.events),
        )


class FakeJob:
    def __init__(self, scheduler, func, trigger, kwargs):
        self.scheduler = scheduler
        self.func = func
        self.trigger = trigger
        self.kwargs = kwargs
        self.id = kwargs.get("id")

    def remove(self):
        self.scheduler.jobs.remove(self)
        self.scheduler.removed.append(self)


class FakeScheduler:
    def __init__(self, running=False):
        self.jobs = []
        self.removed = []
        self.running = running
        self.start_calls = 0
        self.shutdown_calls = 0

    def add_job(self, func, trigger, **kwargs):
        job = FakeJob(self, func, trigger, kwargs)
        self.jobs.append(job)
        return job

    def start(self):
        self.start_calls += 1
        self.running = True

    def shutdown(self, wait=True):
        self.shutdown_calls += 1
        self.running = False


def create_user(username: str, password: str, is_admin=False):
    user = User(username=username, is_admin=is_admin, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def issue_token(user) -> str:
    token, token_hash = ApiToken.issue_token()
    db.session.add(ApiToken(user_id=user.id, name="pytest", token_hash=token_hash))
    db.session.commit()
    return token
