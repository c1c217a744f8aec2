"""Self-signed root CA generation.

Builds the CA certificate template (serial, validity window, basic
constraints, key usage) and self-signs it with a fresh RSA key.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from opentelemetry import trace

from rootca.ca.crypto import compute_thumbprint, format_serial, generate_serial_number
from rootca.metrics import rootca_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

RECOMMENDED_KEY_SIZES = (2048, 4096)
MIN_SECURE_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537
# Allows signing one level of intermediate CAs
MAX_PATH_LENGTH = 1


class CAConfigError(Exception):
    """Raised when the CA configuration is invalid."""

    pass


class RootCAGenerationError(Exception):
    """Raised when root CA generation fails."""

    pass


@dataclass
class CAConfig:
    """Parameters for the root CA."""

    common_name: str
    organization: str = ""
    validity_days: int = 365 * 10
    key_bit_size: int = 4096
    cert_output_file: str = ""
    key_output_file: str = ""


@dataclass
class GeneratedRootCA:
    """Result of root CA generation."""

    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey
    serial_number: str
    thumbprint: str
    not_before: datetime
    not_after: datetime

    @property
    def certificate_pem(self) -> str:
        """Get CA certificate as PEM string."""
        return self.certificate.public_bytes(serialization.Encoding.PEM).decode("utf-8")


def validate_config(config: CAConfig) -> list[str]:
    """Validate a CA configuration.

    Returns:
        Warnings about the key size. Non-standard sizes are allowed.

    Raises:
        CAConfigError: If the common name is empty or validity is not positive.
    """
    if not config.common_name or not config.common_name.strip():
        raise CAConfigError("Common Name cannot be empty.")

    if config.validity_days <= 0:
        raise CAConfigError(f"Validity days must be positive. Got {config.validity_days}.")

    warnings = []
    if config.key_bit_size not in RECOMMENDED_KEY_SIZES:
        warnings.append(
            f"Recommended key sizes are 2048 or 4096. Using {config.key_bit_size} bits."
        )
        if config.key_bit_size < MIN_SECURE_KEY_SIZE:
            warnings.append("Key size less than 2048 bits is considered insecure.")
    return warnings


def build_ca_name(common_name: str, organization: str = "") -> x509.Name:
    """Build the subject (and issuer) name. O is omitted when empty."""
    attributes = [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    if organization:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    return x509.Name(attributes)


def generate_root_ca(config: CAConfig) -> GeneratedRootCA:
    """Create a self-signed root CA certificate and its private key.

    Args:
        config: CA parameters. Validated before any key material is made.

    Returns:
        GeneratedRootCA holding the certificate, key and summary fields.

    Raises:
        CAConfigError: If the configuration is invalid.
        RootCAGenerationError: If key generation, signing or the
            post-signing self check fails.
    """
    with tracer.start_as_current_span("generate_root_ca") as span:
        span.set_attribute("common_name", config.common_name)
        span.set_attribute("key_bits", config.key_bit_size)
        span.set_attribute("validity_days", config.validity_days)

        for warning in validate_config(config):
            logger.warning("ca_config_warning", extra={"warning": warning})

        start_time = time.time()

        try:
            logger.debug("generating_rsa_key", extra={"key_bits": config.key_bit_size})
            private_key = rsa.generate_private_key(
                public_exponent=PUBLIC_EXPONENT,
                key_size=config.key_bit_size,
            )

            serial_number = generate_serial_number()
            serial_str = format_serial(serial_number)
            span.set_attribute("serial", serial_str)

            not_before = datetime.now(timezone.utc)
            not_after = not_before + timedelta(days=config.validity_days)

            # Self-signed, issuer == subject
            subject = issuer = build_ca_name(config.common_name, config.organization)

            certificate = (
                x509.CertificateBuilder()
                .subject_name(subject)
                .issuer_name(issuer)
                .public_key(private_key.public_key())
                .serial_number(serial_number)
                .not_valid_before(not_before)
                .not_valid_after(not_after)
                .add_extension(
                    x509.BasicConstraints(ca=True, path_length=MAX_PATH_LENGTH),
                    critical=True,
                )
                .add_extension(
                    x509.KeyUsage(
                        digital_signature=False,
                        key_cert_sign=True,
                        crl_sign=True,
                        key_encipherment=False,
                        content_commitment=False,
                        data_encipherment=False,
                        key_agreement=False,
                        encipher_only=False,
                        decipher_only=False,
                    ),
                    critical=True,
                )
                .add_extension(
                    x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                    critical=False,
                )
                .sign(private_key, hashes.SHA256())
            )

            # The generated certificate must parse and carry a valid self-signature
            reparsed = x509.load_der_x509_certificate(
                certificate.public_bytes(serialization.Encoding.DER)
            )
            reparsed.verify_directly_issued_by(reparsed)

            cert_pem = certificate.public_bytes(serialization.Encoding.PEM).decode("utf-8")
            thumbprint = compute_thumbprint(cert_pem)

        except InvalidSignature as e:
            rootca_metrics.record_root_ca_failed()
            logger.error(
                "root_ca_generation_failed",
                extra={"common_name": config.common_name, "error": "invalid self-signature"},
            )
            raise RootCAGenerationError(
                "Failed to verify generated certificate self-signature"
            ) from e
        except Exception as e:
            rootca_metrics.record_root_ca_failed()
            logger.error(
                "root_ca_generation_failed",
                extra={"common_name": config.common_name, "error": str(e)},
            )
            raise RootCAGenerationError(f"Failed to generate root CA: {e}") from e

        generation_time = time.time() - start_time
        rootca_metrics.record_root_ca_generated(config.key_bit_size, generation_time)

        logger.info(
            "root_ca_generated",
            extra={
                "common_name": config.common_name,
                "serial": serial_str,
                "not_after": not_after.isoformat(),
                "duration_seconds": generation_time,
            },
        )

        return GeneratedRootCA(
            certificate=certificate,
            private_key=private_key,
            serial_number=serial_str,
            thumbprint=thumbprint,
            not_before=not_before,
            not_after=not_after,
        )
