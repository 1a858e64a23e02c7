import time
from typing import Callable, TypeVar

from log_config import log_manager
from utils.retry.error import OperationFailedError
from utils.retry.retry_policy import RetryPolicy

T = TypeVar("T")


class RetryExecutor:
    """Runs a remote operation until it succeeds, fails fatally, or runs out of retries.

    One executor can be shared by concurrent call sites; it keeps no per-call state, so
    a backoff sleep only blocks the thread that is retrying.
    """

    _logger = log_manager.get_logger("RetryExecutor")

    def __init__(self, policy: RetryPolicy, sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            policy (RetryPolicy): Backoff and classification settings.
            sleep (Callable[[float], None]): Sleep function, replaceable in tests.
        """
        self.policy = policy
        self._sleep = sleep

    def execute(self, operation: Callable[[], T], operation_name: str) -> T:
        """Executes `operation` with bounded exponential backoff.

        Args:
            operation (Callable[[], T]): Zero-argument callable performing the remote call.
            operation_name (str): Human-readable label used in logs and errors.

        Returns:
            T: Whatever the operation returns on its first successful attempt.

        Raises:
            OperationFailedError: On a non-retryable error or once retries are exhausted.
        """
        last_error: Exception | None = None
        attempt = 0
        for attempt in range(self.policy.max_retries + 1):
            if attempt > 0:
                backoff = self.policy.backoff_for(attempt - 1)
                self._logger.warning(
                    f"Retrying {operation_name} (attempt {attempt}/{self.policy.max_retries}) after {backoff:.2f}s"
                )
                self._sleep(backoff)

            try:
                result = operation()
            except Exception as e:
                last_error = e
                if not self.policy.should_retry(e, attempt):
                    break
                self._logger.warning(f"Retryable error for {operation_name} (attempt {attempt + 1}): {e}")
                continue

            if attempt > 0:
                self._logger.info(f"Successfully completed {operation_name} after {attempt} retries")
            return result

        exhausted = attempt >= self.policy.max_retries and self.policy.is_retryable(last_error)
        if exhausted:
            self._logger.error(f"Giving up on {operation_name} after {attempt + 1} attempts: {last_error}")
        else:
            self._logger.error(f"Non-retryable error for {operation_name}: {last_error}")
        raise OperationFailedError(operation_name, attempt + 1, last_error, exhausted) from last_error
