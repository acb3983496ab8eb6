from __future__ import annotations


class LinkShelfError(Exception):
    pass


class ValidationError(LinkShelfError):
    def __init__(self, message: str, fields: tuple[str, ...] = ()):
        super().__init__(message)
        self.fields = fields


class SubmissionInProgress(LinkShelfError):
    pass


class StoreError(LinkShelfError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SessionInvalid(StoreError):
    pass


class FeedExpired(StoreError):
    """The feed no longer holds every event after the requested cursor."""

    def __init__(
        self, message: str, cursor: int | None = None, status_code: int | None = 410
    ):
        super().__init__(message, status_code=status_code)
        self.cursor = cursor
