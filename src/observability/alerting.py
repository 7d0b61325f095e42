from src.models.verification import VerificationOutcome
from src.observability.metrics import VerificationMetrics

ALERT_INVALID_RATE = "ipn_invalid_rate"
ALERT_ERROR_RATE = "ipn_verification_error_rate"


class VerificationAlertManager:
    """Fires alerts when INVALID verdicts or verification errors spike.

    A burst of INVALID verdicts usually means someone is posting forged
    notifications. A burst of errors means the processor endpoint is
    unreachable or answering with something unexpected.
    """

    def __init__(
        self,
        metrics: VerificationMetrics,
        invalid_threshold: float = 0.10,
        error_threshold: float = 0.50,
        callback=None,
    ):
        self.metrics = metrics
        self.invalid_threshold = invalid_threshold
        self.error_threshold = error_threshold
        self.callback = callback
        self._fired: set[str] = set()
        self._alerts: list[dict] = []

    def check(self) -> list[dict]:
        """Check both rates. Returns the alerts newly fired by this call."""
        total = self.metrics.total_in_window()
        if total == 0:
            self._fired.clear()
            return []

        fired = []
        for alert_type, outcome, rate, threshold, label in (
            (
                ALERT_INVALID_RATE,
                VerificationOutcome.INVALID,
                self.metrics.invalid_rate(),
                self.invalid_threshold,
                "INVALID notification rate",
            ),
            (
                ALERT_ERROR_RATE,
                VerificationOutcome.ERROR,
                self.metrics.error_rate(),
                self.error_threshold,
                "Verification error rate",
            ),
        ):
            if rate <= threshold:
                # back below threshold, re-arm
                self._fired.discard(alert_type)
                continue
            if alert_type in self._fired:
                continue

            count = self.metrics.count_in_window(outcome)
            alert = {
                "type": alert_type,
                "rate": rate,
                "threshold": threshold,
                "total_verifications": total,
                "matching_verifications": count,
                "message": (
                    f"{label} {rate:.1%} exceeds threshold {threshold:.1%} "
                    f"({count}/{total} verifications)"
                ),
            }
            self._fired.add(alert_type)
            self._alerts.append(alert)
            fired.append(alert)

            if self.callback:
                self.callback(alert)

        return fired

    def get_alerts(self) -> list[dict]:
        return list(self._alerts)

    def reset(self) -> None:
        self._fired.clear()
        self._alerts.clear()
