"""Integration tests for the verification round trip against the sandbox."""

import pytest

from src.ipn.exceptions import ProtocolViolationError, VerificationHTTPError
from src.models.verification import VerificationOutcome
from src.utils.factories import NotificationFactory


pytestmark = pytest.mark.integration


class TestVerdicts:
    """The endpoint's body maps to a verdict or a protocol violation."""

    def test_verified_returns_true(self, verifier, sandbox):
        sandbox.set_response_body("VERIFIED")
        assert verifier.verify(NotificationFactory.create()) is True

    def test_invalid_returns_false(self, verifier, sandbox):
        sandbox.set_response_body("INVALID")
        assert verifier.verify(NotificationFactory.create()) is False

    @pytest.mark.parametrize(
        "body",
        ["", "verified", "VERIFIED\n", " INVALID", "VERIFIEDINVALID", "<html>Server busy</html>"],
    )
    def test_any_other_body_is_a_protocol_violation(self, verifier, sandbox, body):
        sandbox.set_response_body(body)
        with pytest.raises(ProtocolViolationError) as exc_info:
            verifier.verify(NotificationFactory.create())
        assert exc_info.value.body == body

    def test_non_2xx_status_is_a_transport_error_not_a_verdict(self, verifier, sandbox):
        sandbox.set_response_code(503).set_response_body("INVALID")
        with pytest.raises(VerificationHTTPError) as exc_info:
            verifier.verify(NotificationFactory.create())
        assert exc_info.value.status_code == 503


class TestRequestShape:
    """What the verifier puts on the wire."""

    def test_posts_with_validate_command(self, verifier, sandbox):
        verifier.verify(NotificationFactory.create())

        received = sandbox.get_received()
        assert len(received) == 1
        assert received[0]["path"] == "/cgi-bin/webscr"
        assert received[0]["query"] == {"cmd": ["_notify-validate"]}

    def test_sends_content_length_and_user_agent(self, verifier, sandbox):
        notification = NotificationFactory.create()
        verifier.verify(notification)

        headers = sandbox.get_received()[0]["headers"]
        assert headers["Content-Length"] == str(len(notification.raw))
        assert headers["User-Agent"] == verifier.config.user_agent
        assert headers["Content-Type"] == "application/x-www-form-urlencoded"


class TestAttemptRecording:

    def test_verdicts_are_logged(self, verifier, sandbox, attempt_log):
        notification = NotificationFactory.create()
        verifier.verify(notification)
        sandbox.set_response_body("INVALID")
        verifier.verify(notification)

        attempts = attempt_log.get_attempts(transaction_id=notification.transaction_id)
        assert [a.outcome for a in attempts] == [
            VerificationOutcome.VERIFIED,
            VerificationOutcome.INVALID,
        ]
        assert all(a.status_code == 200 for a in attempts)
        assert all(a.error is None for a in attempts)
        assert all(a.url == sandbox.url for a in attempts)
        assert len(attempt_log.get_invalid_attempts()) == 1

    def test_protocol_violation_is_logged_as_error(self, verifier, sandbox, attempt_log):
        sandbox.set_response_body("maintenance")
        with pytest.raises(ProtocolViolationError):
            verifier.verify(NotificationFactory.create())

        failed = attempt_log.get_failed_attempts()
        assert len(failed) == 1
        assert failed[0].outcome is VerificationOutcome.ERROR
        assert failed[0].status_code == 200
        assert "maintenance" in failed[0].error

    def test_outcomes_feed_metrics(self, verifier, sandbox, metrics):
        verifier.verify(NotificationFactory.create())
        sandbox.set_response_body("INVALID")
        verifier.verify(NotificationFactory.create())

        assert metrics.total_in_window() == 2
        assert metrics.invalid_rate() == pytest.approx(0.5)

    def test_verifier_without_log_or_metrics(self, sandbox_config):
        from src.ipn.verifier import IPNVerifier

        assert IPNVerifier(sandbox_config).verify(NotificationFactory.create()) is True
