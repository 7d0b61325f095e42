from typing import Any


class IPNError(Exception):
    """Base exception for notification parsing and verification errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(IPNError):
    """Verifier configuration is missing or invalid."""


class FieldError(IPNError):
    """A strict accessor could not produce a value for a field."""

    def __init__(self, message: str, field: str, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.field = field


class MissingFieldError(FieldError):
    """The notification does not carry the requested field."""

    def __init__(self, field: str):
        super().__init__(f"Notification has no '{field}' field", field)


class InvalidFieldError(FieldError):
    """The field is present but its value cannot be interpreted."""

    def __init__(self, field: str, value: str, reason: str = ""):
        message = f"Invalid value for '{field}': {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, field, {"value": value})
        self.value = value


class VerificationError(IPNError):
    """Verification with the processor could not produce a verdict."""


class VerificationTransportError(VerificationError):
    """The processor could not be reached or the exchange broke off.

    Distinct from an INVALID verdict: nothing was learned about the
    notification itself.
    """


class VerificationTimeoutError(VerificationTransportError):
    """The processor did not answer within the configured timeout."""


class VerificationHTTPError(VerificationTransportError):
    """The processor answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(
            f"Verification endpoint returned HTTP {status_code}",
            {"status_code": status_code, "body": body[:200]},
        )
        self.status_code = status_code


class ProtocolViolationError(VerificationError):
    """The processor answered with something other than VERIFIED or INVALID.

    Treat as an operational alarm (endpoint misconfigured, API change or a
    man in the middle), not as a business decision about the payment.
    """

    def __init__(self, body: str, status_code: int | None = None):
        super().__init__(
            f"Faulty verification result: {body[:200]!r}",
            {"body": body[:200], "status_code": status_code},
        )
        self.body = body
        self.status_code = status_code
