import time

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from helpers import make_bookmark, wait_for
from linkshelf.client.models import Created, Deleted
from linkshelf.client.view import BookmarkView


POLL_SECONDS = 0.05


@pytest.fixture
def shared_scheduler():
    scheduler = BackgroundScheduler(daemon=True)
    scheduler.start()
    yield scheduler
    if scheduler.running:
        scheduler.shutdown(wait=False)


def _ids(view):
    return [item.id for item in view.bookmarks]


def _publish_new(store, bookmark_id, minutes):
    record = store.seed(make_bookmark(bookmark_id, minutes=minutes))
    store.publish(Created, record)
    return record


def test_background_polling_applies_feed_without_manual_poll(fake_store):
    with BookmarkView(fake_store, poll_interval=POLL_SECONDS) as view:
        _publish_new(fake_store, "remote", minutes=1)
        assert wait_for(lambda: _ids(view) == ["remote"])

        fake_store.records.pop("remote")
        fake_store.publish(Deleted, "remote", fake_store.user.id)
        assert wait_for(lambda: _ids(view) == [])

    scheduler = view.listener._scheduler
    assert scheduler.running is False


def test_closed_view_stops_receiving_changes(fake_store):
    view = BookmarkView(fake_store, poll_interval=POLL_SECONDS).open()
    view.close()

    _publish_new(fake_store, "after-close", minutes=1)
    time.sleep(POLL_SECONDS * 6)

    assert _ids(view) == []


def test_two_views_share_one_scheduler(fake_store, shared_scheduler):
    first = BookmarkView(
        fake_store, poll_interval=POLL_SECONDS, scheduler=shared_scheduler
    )
    second = BookmarkView(
        fake_store, poll_interval=POLL_SECONDS, scheduler=shared_scheduler
    )

    with first:
        with second:
            assert len(shared_scheduler.get_jobs()) == 2
            _publish_new(fake_store, "both", minutes=1)
            assert wait_for(lambda: "both" in _ids(first) and "both" in _ids(second))

        assert shared_scheduler.running is True
        assert len(shared_scheduler.get_jobs()) == 1

        _publish_new(fake_store, "first-only", minutes=2)
        assert wait_for(lambda: _ids(first) == ["first-only", "both"])
        assert _ids(second) == ["both"]

    assert shared_scheduler.get_jobs() == []
    assert shared_scheduler.running is True


def test_feed_outage_at_open_recovers_in_background(fake_store):
    fake_store.fail_cursor = True

    with BookmarkView(fake_store, poll_interval=POLL_SECONDS) as view:
        assert view.live is True
        _publish_new(fake_store, "during-outage", minutes=1)
        fake_store.fail_cursor = False

        assert wait_for(lambda: view.listener.synced)
        assert wait_for(lambda: _ids(view) == ["during-outage"])

        _publish_new(fake_store, "after-outage", minutes=2)
        assert wait_for(lambda: _ids(view) == ["after-outage", "during-outage"])
