import httpx
import pytest

from helpers import FakeScheduler, FakeStore
from linkshelf import create_app
from linkshelf.client.transport import StoreClient
from linkshelf.config import TestConfig
from linkshelf.extensions import db


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def store_factory(app):
    clients = []

    def factory(token):
        store = StoreClient(
            "http://testserver/api/v1",
            token,
            transport=httpx.WSGITransport(app=app),
        )
        clients.append(store)
        return store

    yield factory
    for store in clients:
        store.close()
