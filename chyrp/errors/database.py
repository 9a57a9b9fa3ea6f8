from logging import getLogger

from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from chyrp.configs import file_logger
from chyrp.errors.base import BaseAppError, create_exception_handler

logger = file_logger(getLogger(__name__))


class DatabaseError(BaseAppError):
    """Base exception for document store errors."""

    def __init__(
        self,
        detail: str = "Database Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class DatabaseConnectionError(DatabaseError):
    """Exception raised when the document store cannot be reached."""

    def __init__(
        self,
        detail: str = "Failed to connect to the document store",
    ) -> None:
        super().__init__(detail, HTTP_503_SERVICE_UNAVAILABLE)


class RecordNotFoundError(DatabaseError):
    """Exception raised when a document is not found."""

    def __init__(
        self,
        detail: str = "Record not found",
    ) -> None:
        super().__init__(detail, HTTP_404_NOT_FOUND)


class TransactionError(DatabaseError):
    """Exception raised when a transaction fails."""

    def __init__(
        self,
        detail: str = "Transaction failed",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class TransactionConflictError(TransactionError):
    """A document read inside the transaction changed before commit."""

    def __init__(
        self,
        detail: str = "Transaction conflict",
    ) -> None:
        super().__init__(detail, HTTP_409_CONFLICT)


class TransactionAbortedError(TransactionError):
    """Raised when every retry of a transaction ended in a conflict."""

    def __init__(
        self,
        detail: str = "Transaction aborted after repeated conflicts",
        attempts: int = 0,
    ) -> None:
        super().__init__(detail, HTTP_409_CONFLICT)
        self.attempts = attempts


database_exception_handler = create_exception_handler(logger)
