import threading
import time

from src.models.verification import VerificationOutcome


class VerificationMetrics:
    """Collects verification outcomes over a rolling time window."""

    def __init__(self, window_seconds: float = 300):
        self._window_seconds = window_seconds
        self._events: dict[VerificationOutcome, list[float]] = {
            outcome: [] for outcome in VerificationOutcome
        }
        self._lock = threading.Lock()

    def record(self, outcome: VerificationOutcome) -> None:
        with self._lock:
            self._events[outcome].append(time.monotonic())

    def record_verified(self) -> None:
        self.record(VerificationOutcome.VERIFIED)

    def record_invalid(self) -> None:
        self.record(VerificationOutcome.INVALID)

    def record_error(self) -> None:
        self.record(VerificationOutcome.ERROR)

    def _prune(self, data: list[float], now: float) -> list[float]:
        cutoff = now - self._window_seconds
        return [t for t in data if t >= cutoff]

    def _counts(self) -> dict[VerificationOutcome, int]:
        with self._lock:
            now = time.monotonic()
            counts = {}
            for outcome, stamps in self._events.items():
                # drop expired entries for good so the lists stay window-sized
                self._events[outcome] = self._prune(stamps, now)
                counts[outcome] = len(self._events[outcome])
            return counts

    def count_in_window(self, outcome: VerificationOutcome) -> int:
        return self._counts()[outcome]

    def total_in_window(self) -> int:
        return sum(self._counts().values())

    def _rate(self, outcome: VerificationOutcome) -> float:
        counts = self._counts()
        total = sum(counts.values())
        if total == 0:
            return 0.0
        return counts[outcome] / total

    def invalid_rate(self) -> float:
        """Share of INVALID verdicts in the current window (0.0 to 1.0)."""
        return self._rate(VerificationOutcome.INVALID)

    def error_rate(self) -> float:
        """Share of calls that produced no verdict in the current window."""
        return self._rate(VerificationOutcome.ERROR)

    def reset(self) -> None:
        with self._lock:
            for stamps in self._events.values():
                stamps.clear()
