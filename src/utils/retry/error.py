from utils.error.base_custom_error import BaseCustomError


class RetryError(BaseCustomError):
    """Base exception for retry-related errors."""


class OperationFailedError(RetryError):
    """Raised when a retried operation gives up, either on a fatal error or after exhausting its retries."""

    def __init__(self, operation_name: str, attempts: int, error: Exception, exhausted: bool):
        super().__init__(
            f"operation {operation_name} failed after {attempts} attempts: {error}",
            operation=operation_name,
            attempts=attempts,
            exhausted=exhausted,
        )
        self.operation_name = operation_name
        self.attempts = attempts
        self.exhausted = exhausted
        self.last_error = error
