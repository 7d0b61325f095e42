import threading

from src.models.verification import VerificationAttempt, VerificationOutcome


class VerificationLogger:
    """Thread-safe log of verification attempts."""

    def __init__(self):
        self._attempts: list[VerificationAttempt] = []
        self._lock = threading.Lock()

    def log(self, attempt: VerificationAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def get_attempts(self, transaction_id: str | None = None) -> list[VerificationAttempt]:
        with self._lock:
            if transaction_id is None:
                return list(self._attempts)
            return [a for a in self._attempts if a.transaction_id == transaction_id]

    def get_invalid_attempts(self) -> list[VerificationAttempt]:
        with self._lock:
            return [a for a in self._attempts if a.outcome is VerificationOutcome.INVALID]

    def get_failed_attempts(self) -> list[VerificationAttempt]:
        """Attempts that produced no verdict (transport or protocol errors)."""
        with self._lock:
            return [a for a in self._attempts if a.outcome is VerificationOutcome.ERROR]

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
