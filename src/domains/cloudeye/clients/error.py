from domains.cloudeye.constants import RETRYABLE_STATUS_CODES
from domains.cloudeye.error import CloudEyeError


class CloudApiError(CloudEyeError):
    """Raised when a remote cloud API answers with an error."""

    def __init__(
        self,
        message: str,
        endpoint: str,
        status_code: int | None = None,
        error_code: str | None = None,
        **metadata,
    ):
        super().__init__(message, endpoint=endpoint, status_code=status_code, error_code=error_code, **metadata)
        self.endpoint = endpoint
        self.status_code = status_code
        self.error_code = error_code

    @property
    def retryable(self) -> bool | None:
        # None leaves the decision to the retry policy's message signatures
        if self.status_code is None:
            return None
        return self.status_code in RETRYABLE_STATUS_CODES


class CloudApiConnectionError(CloudApiError):
    """Raised when the request never got an answer (timeout, refused or reset connection)."""

    @property
    def retryable(self) -> bool:
        return True
