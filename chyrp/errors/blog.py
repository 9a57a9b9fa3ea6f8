"""Exceptions raised by the post, comment and interaction services."""

from logging import getLogger

from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from chyrp.configs import file_logger
from chyrp.errors.base import BaseAppError, create_exception_handler
from chyrp.errors.database import RecordNotFoundError

logger = file_logger(getLogger(__name__))


class PostNotFoundError(RecordNotFoundError):
    """Raised when a post document does not exist."""

    def __init__(self, post_id: str) -> None:
        super().__init__(f"Post {post_id} does not exist")


class UserNotFoundError(RecordNotFoundError):
    """Raised when a user profile does not exist."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"User {uid} does not exist")


class InvalidPostUpdateError(BaseAppError):
    """Raised when an update tries to write fields owned by another component."""

    def __init__(self, detail: str = "Invalid post update") -> None:
        super().__init__(detail, HTTP_400_BAD_REQUEST)


class InteractionUpdateError(BaseAppError):
    """Raised when a like/dislike toggle could not be applied."""

    def __init__(
        self,
        detail: str = "Failed to update interaction",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


blog_exception_handler = create_exception_handler(logger)
