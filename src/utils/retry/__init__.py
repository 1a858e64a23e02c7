from .error import OperationFailedError, RetryError
from .retry_executor import RetryExecutor
from .retry_policy import DEFAULT_RETRYABLE_SIGNATURES, RetryPolicy

__all__ = [
    "DEFAULT_RETRYABLE_SIGNATURES",
    "OperationFailedError",
    "RetryError",
    "RetryExecutor",
    "RetryPolicy",
]
