from linkshelf.client.container import BookmarkContainer
from linkshelf.client.errors import (
    FeedExpired,
    LinkShelfError,
    SessionInvalid,
    StoreError,
    SubmissionInProgress,
    ValidationError,
)
from linkshelf.client.listener import ChangeFeedListener
from linkshelf.client.models import Bookmark, Created, CurrentUser, Deleted
from linkshelf.client.mutations import BookmarkMutations
from linkshelf.client.refresh import RefreshLoader
from linkshelf.client.transport import StoreClient
from linkshelf.client.view import BookmarkView

__all__ = [
    "Bookmark",
    "BookmarkContainer",
    "BookmarkMutations",
    "BookmarkView",
    "ChangeFeedListener",
    "Created",
    "CurrentUser",
    "Deleted",
    "FeedExpired",
    "LinkShelfError",
    "RefreshLoader",
    "SessionInvalid",
    "StoreClient",
    "StoreError",
    "SubmissionInProgress",
    "ValidationError",
]
