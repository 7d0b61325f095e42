import ipaddress
import ssl
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from src.ipn.config import VerifierConfig
from src.ipn.logger import VerificationLogger
from src.ipn.retry import RetryPolicy
from src.ipn.verifier import IPNVerifier
from src.observability.alerting import VerificationAlertManager
from src.observability.metrics import VerificationMetrics
from src.processor_sandbox.server import ProcessorSandboxServer
from src.utils.factories import NotificationFactory


@pytest.fixture
def attempt_log():
    return VerificationLogger()


@pytest.fixture
def retry_policy():
    return RetryPolicy()


@pytest.fixture
def metrics():
    return VerificationMetrics(window_seconds=300)


@pytest.fixture
def alert_manager(metrics):
    return VerificationAlertManager(metrics=metrics, invalid_threshold=0.10)


@pytest.fixture
def sandbox():
    server = ProcessorSandboxServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def strict_sandbox():
    """Sandbox that only verifies bodies registered with issue()."""
    server = ProcessorSandboxServer(verify_raw=True)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def sandbox_config(sandbox):
    return VerifierConfig(url=sandbox.url, timeout_seconds=5)


@pytest.fixture
def verifier(sandbox_config, attempt_log, metrics):
    return IPNVerifier(sandbox_config, attempt_log=attempt_log, metrics=metrics)


@pytest.fixture
def strict_verifier(strict_sandbox, attempt_log, metrics):
    config = VerifierConfig(url=strict_sandbox.url, timeout_seconds=5)
    return IPNVerifier(config, attempt_log=attempt_log, metrics=metrics)


@pytest.fixture
def notification_factory():
    return NotificationFactory


def _write_pem(path, data: bytes) -> str:
    path.write_bytes(data)
    return str(path)


@pytest.fixture(scope="session")
def tls_material(tmp_path_factory):
    """A throwaway CA and a server certificate for 127.0.0.1 signed by it."""
    directory = tmp_path_factory.mktemp("tls")
    now = datetime.now(timezone.utc)

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "IPN Sandbox Test CA")])
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(ca_name)
        .issuer_name(ca_name)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True,
                crl_sign=True, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    server_key = ec.generate_private_key(ec.SECP256R1())
    server_cert = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "127.0.0.1")]))
        .issuer_name(ca_name)
        .public_key(server_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName([
                x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
                x509.DNSName("localhost"),
            ]),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(server_key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False
        )
        .sign(ca_key, hashes.SHA256())
    )

    return {
        "ca_bundle": _write_pem(directory / "ca.pem", ca_cert.public_bytes(serialization.Encoding.PEM)),
        "cert": _write_pem(directory / "server.pem", server_cert.public_bytes(serialization.Encoding.PEM)),
        "key": _write_pem(
            directory / "server.key",
            server_key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            ),
        ),
    }


@pytest.fixture
def tls_sandbox(tls_material):
    """Sandbox served over HTTPS with a certificate from the test CA."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(tls_material["cert"], tls_material["key"])
    server = ProcessorSandboxServer(ssl_context=context)
    server.start()
    yield server
    server.stop()
