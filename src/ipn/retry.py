from src.ipn.exceptions import VerificationError, VerificationTransportError


class RetryPolicy:
    """Decides whether and when a failed verification call is retried.

    Only transport failures are retried. An INVALID verdict or a protocol
    violation is an answer from the processor and repeating the call does
    not change it.
    """

    DEFAULT_SCHEDULE = [1, 5, 30]  # 1s, 5s, 30s

    # HTTP statuses that will not get better on retry
    NO_RETRY_CODES = {400, 401, 403, 404, 405, 422}

    def __init__(self, schedule: list[float] | None = None, max_retries: int | None = None):
        self.schedule = schedule or self.DEFAULT_SCHEDULE
        self.max_retries = max_retries if max_retries is not None else len(self.schedule)

    def should_retry(self, error: VerificationError) -> bool:
        if not isinstance(error, VerificationTransportError):
            return False
        status_code = error.details.get("status_code")
        if status_code is None:
            return True
        if status_code in self.NO_RETRY_CODES:
            return False
        return status_code >= 500 or status_code == 429

    def next_delay(self, attempt: int) -> float:
        """Get the delay in seconds before the next retry attempt (0-indexed)."""
        if attempt >= len(self.schedule):
            return float(self.schedule[-1])
        return float(self.schedule[attempt])

    def has_attempts_remaining(self, attempt: int) -> bool:
        return attempt < self.max_retries
