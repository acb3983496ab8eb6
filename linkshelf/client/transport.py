from __future__ import annotations

import httpx

from linkshelf.client.errors import FeedExpired, SessionInvalid, StoreError
from linkshelf.client.models import (
    Bookmark,
    ChangePage,
    CurrentUser,
    notification_from_event,
)


DEFAULT_HEADERS = {
    "User-Agent": "LinkShelfClient/1.0",
    "Accept": "application/json",
}


class StoreClient:
    """HTTP access to the bookmark store, its change feed and the session."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = dict(DEFAULT_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, transport=None) -> StoreClient:
        return cls(
            config.API_URL,
            config.API_TOKEN,
            timeout=config.STORE_REQUEST_TIMEOUT,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._http.base_url).rstrip("/")

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def current_user(self) -> CurrentUser:
        payload = self._request("GET", "/auth/me")
        if not payload or payload.get("id") is None:
            raise SessionInvalid("no authenticated user")
        return CurrentUser.from_payload(payload)

    def create(self, title: str, target: str, note: str, owner) -> Bookmark:
        payload = self._request(
            "POST",
            "/bookmarks",
            json={"title": title, "url": target, "note": note, "owner": owner},
        )
        return _parse(Bookmark.from_payload, payload)

    def delete(self, bookmark_id: str) -> None:
        self._request("DELETE", f"/bookmarks/{bookmark_id}")

    def list_by_owner(self, owner) -> list[Bookmark]:
        payload = self._request("GET", "/bookmarks")
        records = [
            _parse(Bookmark.from_payload, item) for item in payload.get("items", [])
        ]
        return [record for record in records if str(record.owner) == str(owner)]

    def feed_cursor(self) -> int:
        payload = self._request("GET", "/changes/cursor")
        return int(payload.get("cursor") or 0)

    def pull_changes(self, since: int, limit: int = 200) -> ChangePage:
        payload = self._request(
            "GET", "/changes", params={"since": since, "limit": limit}
        )
        notifications = []
        for event in payload.get("events", []):
            notification = _parse(notification_from_event, event)
            if notification is not None:
                notifications.append(notification)
        return ChangePage(
            notifications=notifications,
            cursor=int(payload.get("cursor") or since),
            has_more=bool(payload.get("has_more")),
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == 401:
            raise SessionInvalid("authentication required", status_code=401)
        if response.status_code == 410:
            raise FeedExpired(
                f"{method} {path}: {_error_message(response)}",
                cursor=_expired_head(response),
            )
        if response.is_error:
            raise StoreError(
                f"{method} {path} returned {response.status_code}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
            ) from exc


def _parse(factory, payload):
    try:
        return factory(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"malformed store payload: {exc}") from exc


def _expired_head(response: httpx.Response) -> int | None:
    try:
        return int(response.json()["cursor"])
    except (KeyError, TypeError, ValueError):
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return response.text[:200]
