from chyrp.errors.base import BASE_EXCEPTION, BaseAppError, create_exception_handler
from chyrp.errors.blog import (
    InteractionUpdateError,
    InvalidPostUpdateError,
    PostNotFoundError,
    UserNotFoundError,
    blog_exception_handler,
)
from chyrp.errors.cache import (
    CacheDeserializationError,
    CacheExceptionError,
    CacheKeyError,
    CacheSerializationError,
    cache_exception_handler,
)
from chyrp.errors.database import (
    DatabaseConnectionError,
    DatabaseError,
    RecordNotFoundError,
    TransactionAbortedError,
    TransactionConflictError,
    TransactionError,
    database_exception_handler,
)

__all__ = [
    "BASE_EXCEPTION",
    "BaseAppError",
    "CacheDeserializationError",
    "CacheExceptionError",
    "CacheKeyError",
    "CacheSerializationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "InteractionUpdateError",
    "InvalidPostUpdateError",
    "PostNotFoundError",
    "RecordNotFoundError",
    "TransactionAbortedError",
    "TransactionConflictError",
    "TransactionError",
    "UserNotFoundError",
    "blog_exception_handler",
    "cache_exception_handler",
    "create_exception_handler",
    "database_exception_handler",
]
