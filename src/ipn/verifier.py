import logging
import time
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import requests

from src.ipn.config import VerifierConfig
from src.ipn.exceptions import (
    ProtocolViolationError,
    VerificationError,
    VerificationHTTPError,
    VerificationTimeoutError,
    VerificationTransportError,
)
from src.ipn.logger import VerificationLogger
from src.ipn.retry import RetryPolicy
from src.models.verification import VerificationAttempt, VerificationOutcome

if TYPE_CHECKING:
    from src.models.notification import Notification
    from src.observability.metrics import VerificationMetrics

logger = logging.getLogger(__name__)

VALIDATE_PARAMS = {"cmd": "_notify-validate"}
VERIFIED = "VERIFIED"
INVALID = "INVALID"


class IPNVerifier:
    """Confirms notifications with the processor by echoing them back.

    The raw body is POSTed unchanged to the validation endpoint, which must
    answer with exactly ``VERIFIED`` or ``INVALID``.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        attempt_log: VerificationLogger | None = None,
        metrics: "VerificationMetrics | None" = None,
    ):
        self.config = config or VerifierConfig()
        self.attempt_log = attempt_log
        self.metrics = metrics

    def verify(self, notification: "Notification") -> bool:
        """Ask the processor whether the notification is genuine.

        Returns:
            True for VERIFIED, False for INVALID.

        Raises:
            VerificationTransportError: The endpoint could not be reached,
                timed out, dropped the connection or returned a non-2xx status.
            ProtocolViolationError: The endpoint answered with any other body.
        """
        payload = notification.raw
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Content-Length": str(len(payload)),
            "User-Agent": self.config.user_agent,
        }

        logger.debug(
            "Verifying notification txn_id=%s (%d bytes) with %s",
            notification.transaction_id,
            len(payload),
            self.config.url,
        )

        start = time.monotonic()
        status_code = None

        try:
            try:
                resp = requests.post(
                    self.config.url,
                    params=VALIDATE_PARAMS,
                    data=payload,
                    headers=headers,
                    timeout=self.config.timeout_seconds,
                    verify=self.config.tls_verify,
                )
            except requests.exceptions.Timeout as e:
                raise VerificationTimeoutError(
                    f"Verification timed out after {self.config.timeout_seconds}s",
                    {"url": self.config.url},
                ) from e
            except requests.exceptions.RequestException as e:
                raise VerificationTransportError(
                    f"Verification request failed: {e}",
                    {"url": self.config.url},
                ) from e
            except OSError as e:
                # requests raises a bare OSError for an unreadable CA bundle
                raise VerificationTransportError(
                    f"Verification request failed: {e}",
                    {"url": self.config.url, "ca_bundle": self.config.ca_bundle},
                ) from e

            status_code = resp.status_code
            body = resp.text
            if not 200 <= status_code < 300:
                raise VerificationHTTPError(status_code, body)
            if body not in (VERIFIED, INVALID):
                raise ProtocolViolationError(body, status_code)
        except VerificationError as e:
            self._record(notification, VerificationOutcome.ERROR, status_code, start, str(e))
            if isinstance(e, ProtocolViolationError):
                logger.error(
                    "Protocol violation verifying txn_id=%s: %s",
                    notification.transaction_id,
                    e,
                )
            else:
                logger.warning(
                    "Could not verify txn_id=%s: %s", notification.transaction_id, e
                )
            raise

        verified = body == VERIFIED
        outcome = VerificationOutcome.VERIFIED if verified else VerificationOutcome.INVALID
        self._record(notification, outcome, status_code, start)

        if verified:
            logger.info("Notification txn_id=%s VERIFIED", notification.transaction_id)
        else:
            logger.warning(
                "Notification txn_id=%s INVALID, possible forged callback",
                notification.transaction_id,
            )
        return verified

    def verify_with_retry(
        self,
        notification: "Notification",
        retry_policy: RetryPolicy | None = None,
        delay_factor: float = 1.0,
    ) -> bool:
        """Verify, retrying transport failures per the retry policy.

        Args:
            notification: The notification to verify.
            retry_policy: Schedule and limits; defaults to RetryPolicy().
            delay_factor: Multiplier for retry delays (use 0 in tests to skip waits).

        Returns:
            The verdict of the first call that produced one.
        """
        retry_policy = retry_policy or RetryPolicy()
        retry_count = 0

        while True:
            try:
                return self.verify(notification)
            except VerificationError as e:
                if not retry_policy.should_retry(e):
                    raise
                if not retry_policy.has_attempts_remaining(retry_count):
                    raise

                delay = retry_policy.next_delay(retry_count) * delay_factor
                logger.info(
                    "Retrying verification of txn_id=%s in %.1fs (retry %d)",
                    notification.transaction_id,
                    delay,
                    retry_count + 1,
                )
                if delay > 0:
                    time.sleep(delay)

                retry_count += 1

    def _record(
        self,
        notification: "Notification",
        outcome: VerificationOutcome,
        status_code: int | None,
        start: float,
        error: str | None = None,
    ) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000

        if self.metrics is not None:
            self.metrics.record(outcome)

        if self.attempt_log is None:
            return

        self.attempt_log.log(
            VerificationAttempt(
                attempt_id=f"att_{uuid.uuid4().hex[:16]}",
                transaction_id=notification.transaction_id,
                url=self.config.url,
                outcome=outcome,
                status_code=status_code,
                timestamp=datetime.now(timezone.utc),
                response_time_ms=elapsed_ms,
                error=error,
            )
        )
