from chyrp.decorators.with_retry import STORE_CONNECT_ERRORS, backoff, log_retry, with_retry

__all__ = [
    "STORE_CONNECT_ERRORS",
    "backoff",
    "log_retry",
    "with_retry",
]
