"""Cryptographic helpers for certificate operations.

Provides serial number generation and thumbprint computation.
"""

import hashlib
import logging
import secrets

from cryptography import x509
from cryptography.hazmat.primitives import serialization

logger = logging.getLogger(__name__)

# Serial numbers are drawn from [1, 2**128)
SERIAL_NUMBER_BITS = 128


class CryptoError(Exception):
    """Raised when a cryptographic helper fails."""

    pass


def generate_serial_number() -> int:
    """Generate a random 128-bit certificate serial number.

    Zero is not a valid X.509 serial, so the range starts at 1.
    """
    return 1 + secrets.randbelow((1 << SERIAL_NUMBER_BITS) - 1)


def format_serial(serial_number: int) -> str:
    """Format a serial number as lowercase hex."""
    return format(serial_number, "x")


def compute_thumbprint(cert_pem: str) -> str:
    """Compute SHA-256 thumbprint of a certificate.

    Args:
        cert_pem: Certificate in PEM format.

    Returns:
        Lowercase hexadecimal SHA-256 thumbprint.

    Raises:
        CryptoError: If thumbprint computation fails.
    """
    try:
        cert = x509.load_pem_x509_certificate(cert_pem.encode("utf-8"))
        der_bytes = cert.public_bytes(serialization.Encoding.DER)
        return hashlib.sha256(der_bytes).hexdigest().lower()
    except Exception as e:
        raise CryptoError(f"Failed to compute certificate thumbprint: {e}") from e
