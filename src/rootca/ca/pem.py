"""PEM export and loading for the root CA certificate and key."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from opentelemetry import trace

from rootca.metrics import rootca_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

OUTPUT_DIR_MODE = 0o755
CERT_FILE_MODE = 0o644
KEY_FILE_MODE = 0o600


class PEMExportError(Exception):
    """Raised when writing or reading PEM files fails."""

    pass


@dataclass
class LoadedRootCA:
    """CA certificate and key read back from disk."""

    private_key: PrivateKeyTypes
    certificate: x509.Certificate


def ensure_output_dir(path: str | Path) -> Path:
    """Create the output directory (and parents) if missing."""
    directory = Path(path)
    try:
        directory.mkdir(mode=OUTPUT_DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise PEMExportError(f"Failed to create output directory {str(directory)!r}: {e}") from e
    return directory


def _write_file(path: Path, data: bytes, mode: int) -> None:
    """Write data so the file never exists with looser permissions than mode."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    # O_CREAT's mode is filtered by the umask and ignored for existing files
    try:
        os.fchmod(fd, mode)
    except OSError:
        os.close(fd)
        raise
    with os.fdopen(fd, "wb") as f:
        f.write(data)


def export_to_pem(
    certificate: x509.Certificate,
    private_key: PrivateKeyTypes,
    cert_path: str | Path,
    key_path: str | Path,
) -> None:
    """Write the certificate and PKCS#8 private key as PEM files.

    The certificate is world-readable (0644), the key is owner-only (0600).

    Raises:
        PEMExportError: If encoding or writing either file fails.
    """
    cert_path = Path(cert_path)
    key_path = Path(key_path)

    with tracer.start_as_current_span("export_to_pem") as span:
        span.set_attribute("cert_path", str(cert_path))
        span.set_attribute("key_path", str(key_path))

        logger.debug("encoding_certificate", extra={"path": str(cert_path)})
        cert_pem = certificate.public_bytes(serialization.Encoding.PEM)
        try:
            _write_file(cert_path, cert_pem, CERT_FILE_MODE)
        except OSError as e:
            raise PEMExportError(
                f"Failed to write certificate PEM file {str(cert_path)!r}: {e}"
            ) from e
        rootca_metrics.record_pem_written("certificate")

        logger.debug("encoding_private_key", extra={"path": str(key_path)})
        try:
            key_pem = private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        except (ValueError, TypeError) as e:
            raise PEMExportError(f"Failed to marshal private key to PKCS#8: {e}") from e
        try:
            _write_file(key_path, key_pem, KEY_FILE_MODE)
        except OSError as e:
            raise PEMExportError(
                f"Failed to write private key PEM file {str(key_path)!r}: {e}"
            ) from e
        rootca_metrics.record_pem_written("private_key")

        logger.info(
            "root_ca_exported",
            extra={"cert_path": str(cert_path), "key_path": str(key_path)},
        )


def load_root_ca(cert_path: str | Path, key_path: str | Path) -> LoadedRootCA:
    """Load an unencrypted PEM key and certificate pair from disk.

    Raises:
        PEMExportError: If either file is missing or cannot be parsed.
    """
    try:
        key_pem = Path(key_path).read_bytes()
        cert_pem = Path(cert_path).read_bytes()

        private_key = serialization.load_pem_private_key(key_pem, password=None)
        certificate = x509.load_pem_x509_certificate(cert_pem)
    except Exception as e:
        logger.error(
            "root_ca_load_failed",
            extra={"cert_path": str(cert_path), "key_path": str(key_path), "error": str(e)},
        )
        raise PEMExportError(f"Failed to load CA from file: {e}") from e

    return LoadedRootCA(private_key=private_key, certificate=certificate)
