import httpx

from helpers import create_user, issue_token
from linkshelf.client.view import BookmarkView
from linkshelf.config import ClientConfig
from run import build_parser, store_from_args


def test_watch_flags_do_not_touch_client_config():
    url_before, token_before = ClientConfig.API_URL, ClientConfig.API_TOKEN
    args = build_parser().parse_args(
        ["watch", "--api-url", "http://elsewhere:9000/api/v1/", "--token", "ls_x"]
    )

    with store_from_args(args) as store:
        assert store.base_url == "http://elsewhere:9000/api/v1"

    assert ClientConfig.API_URL == url_before
    assert ClientConfig.API_TOKEN == token_before


def test_watch_without_flags_uses_client_config():
    args = build_parser().parse_args(["watch"])

    with store_from_args(args) as store:
        assert store.base_url == ClientConfig.API_URL.rstrip("/")


def test_store_built_from_flags_opens_a_view(app):
    with app.app_context():
        token = issue_token(create_user("alice", "secret"))
    args = build_parser().parse_args(
        ["watch", "--api-url", "http://testserver/api/v1", "--token", token]
    )

    with store_from_args(args, transport=httpx.WSGITransport(app=app)) as store:
        with BookmarkView(store, start_polling=False) as view:
            assert view.user.username == "alice"
    assert ClientConfig.API_TOKEN != token
