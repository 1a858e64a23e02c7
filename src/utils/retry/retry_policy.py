from dataclasses import dataclass, field

# Substrings that mark an error message as transient when the error carries no structured hint.
DEFAULT_RETRYABLE_SIGNATURES = frozenset(
    {
        "408",
        "429",
        "500",
        "502",
        "503",
        "504",
        "timeout",
        "timed out",
        "connection reset",
        "connection refused",
    }
)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff settings shared read-only by every remote call site.

    Attributes:
        max_retries (int): Retries allowed after the first attempt.
        initial_backoff (float): Delay in seconds before the first retry.
        max_backoff (float): Upper bound for any single delay, in seconds.
        multiplier (float): Growth factor applied per attempt.
        retryable_error_signatures (frozenset[str]): Lower-case substrings that mark an error as transient.
    """

    max_retries: int = 5
    initial_backoff: float = 5.0
    max_backoff: float = 120.0
    multiplier: float = 2.0
    retryable_error_signatures: frozenset[str] = field(default_factory=lambda: DEFAULT_RETRYABLE_SIGNATURES)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff values must be >= 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def backoff_for(self, attempt: int) -> float:
        """Delay in seconds for the given zero-based retry index: min(initial * multiplier^attempt, max)."""
        return min(self.initial_backoff * (self.multiplier**attempt), self.max_backoff)

    def is_retryable(self, error: BaseException) -> bool:
        """Classifies an error as transient.

        Errors exposing a boolean `retryable` attribute are trusted; anything else falls back to
        matching the lower-cased message against the configured signatures.
        """
        retryable = getattr(error, "retryable", None)
        if isinstance(retryable, bool):
            return retryable
        text = str(error).lower()
        return any(signature in text for signature in self.retryable_error_signatures)

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        if error is None or attempt >= self.max_retries:
            return False
        return self.is_retryable(error)
