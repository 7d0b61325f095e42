from .config import LIVE_URL, SANDBOX_URL, InsecureVerificationWarning, VerifierConfig
from .exceptions import (
    ConfigurationError,
    FieldError,
    InvalidFieldError,
    IPNError,
    MissingFieldError,
    ProtocolViolationError,
    VerificationError,
    VerificationHTTPError,
    VerificationTimeoutError,
    VerificationTransportError,
)
from .logger import VerificationLogger
from .parser import parse_form_body
from .retry import RetryPolicy
from .verifier import IPNVerifier

__all__ = [
    "IPNVerifier",
    "VerifierConfig", "SANDBOX_URL", "LIVE_URL", "InsecureVerificationWarning",
    "VerificationLogger",
    "RetryPolicy",
    "parse_form_body",
    "IPNError", "ConfigurationError",
    "FieldError", "MissingFieldError", "InvalidFieldError",
    "VerificationError", "VerificationTransportError", "VerificationTimeoutError",
    "VerificationHTTPError", "ProtocolViolationError",
]
