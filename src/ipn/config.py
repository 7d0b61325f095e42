import logging
import os
import warnings
from dataclasses import dataclass
from typing import Self
from urllib.parse import urlsplit

import certifi

from src.ipn.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://ipnpb.sandbox.paypal.com/cgi-bin/webscr"
LIVE_URL = "https://ipnpb.paypal.com/cgi-bin/webscr"
DEFAULT_CA_BUNDLE = certifi.where()
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "ipn-notify/0.1 (+instant payment notification verifier)"


class InsecureVerificationWarning(UserWarning):
    """Emitted when a verifier is configured without TLS peer verification."""


@dataclass(frozen=True)
class VerifierConfig:
    """Immutable settings for talking to the processor's validation endpoint.

    Args:
        url: Validation endpoint. Defaults to the processor sandbox.
        ca_bundle: Path to the PEM bundle used to authenticate the endpoint.
            Defaults to the certifi bundle shipped with the install.
        timeout_seconds: Connect/read timeout for each verification call.
        user_agent: Sent as the User-Agent header.
        insecure_skip_tls_verify: Disable TLS peer verification even when a
            ca_bundle is set. Only for local testing.
    """

    url: str = SANDBOX_URL
    ca_bundle: str | None = DEFAULT_CA_BUNDLE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    insecure_skip_tls_verify: bool = False

    def __post_init__(self):
        parts = urlsplit(self.url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(
                f"Verification URL must be an absolute http(s) URL: {self.url!r}"
            )
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                "timeout_seconds must be positive",
                {"timeout_seconds": self.timeout_seconds},
            )
        if self.ca_bundle is None and not self.insecure_skip_tls_verify:
            raise ConfigurationError(
                "No CA bundle configured. Pass ca_bundle, or set "
                "insecure_skip_tls_verify=True to explicitly disable TLS "
                "peer verification."
            )
        if (
            self.ca_bundle is not None
            and not self.insecure_skip_tls_verify
            and not os.path.exists(self.ca_bundle)
        ):
            raise ConfigurationError(
                f"CA bundle not found: {self.ca_bundle}",
                {"ca_bundle": self.ca_bundle},
            )
        if self.insecure_skip_tls_verify:
            message = (
                f"TLS peer verification is DISABLED for {self.url}; "
                "verification responses can be forged by anyone on the path"
            )
            warnings.warn(message, InsecureVerificationWarning, stacklevel=3)
            logger.warning(message)

    @property
    def tls_verify(self) -> str | bool:
        """Value for the ``verify`` argument of requests."""
        if self.insecure_skip_tls_verify:
            return False
        return self.ca_bundle

    @classmethod
    def sandbox(cls, **overrides) -> Self:
        return cls(url=SANDBOX_URL, **overrides)

    @classmethod
    def live(cls, **overrides) -> Self:
        return cls(url=LIVE_URL, **overrides)
