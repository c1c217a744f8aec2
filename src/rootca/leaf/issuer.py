"""Leaf certificate issuance against the root CA using openssl.

Each leaf gets its own RSA key and CSR, is signed by the root CA and then
verified against the CA certificate.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from opentelemetry import trace

from rootca.leaf.openssl import OpenSSL, OpenSSLError
from rootca.metrics import rootca_metrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

INITIAL_SERIAL = "01"


class LeafIssuanceError(Exception):
    """Raised when generating or signing a leaf certificate fails."""

    pass


class ChainVerificationError(Exception):
    """Raised when a leaf certificate does not verify against the root CA."""

    pass


@dataclass
class IssuedLeaf:
    """Files produced for one leaf certificate."""

    name: str
    common_name: str
    key_path: Path
    csr_path: Path
    cert_path: Path


def verify_issued_by(ca_cert_path: str | Path, leaf_cert_path: str | Path) -> None:
    """Check in-process that the leaf was issued and signed by the CA.

    Raises:
        ChainVerificationError: If either file cannot be read or parsed, or the
            issuer name or signature does not match.
    """
    try:
        ca_cert = x509.load_pem_x509_certificate(Path(ca_cert_path).read_bytes())
        leaf_cert = x509.load_pem_x509_certificate(Path(leaf_cert_path).read_bytes())
        leaf_cert.verify_directly_issued_by(ca_cert)
    except (OSError, ValueError, TypeError, InvalidSignature) as e:
        raise ChainVerificationError(
            f"{leaf_cert_path} is not issued by {ca_cert_path}: {e or 'bad signature'}"
        ) from e


class LeafIssuer:
    """Issues and verifies leaf certificates signed by a root CA on disk."""

    DEFAULT_KEY_BITS = 2048
    DEFAULT_VALIDITY_DAYS = 365

    def __init__(
        self,
        ca_cert_path: Path,
        ca_key_path: Path,
        serial_file: Path,
        certs_dir: Path,
        organization: str,
        validity_days: int = DEFAULT_VALIDITY_DAYS,
        key_bits: int = DEFAULT_KEY_BITS,
        openssl: OpenSSL | None = None,
    ) -> None:
        self.ca_cert_path = Path(ca_cert_path)
        self.ca_key_path = Path(ca_key_path)
        self.serial_file = Path(serial_file)
        self.certs_dir = Path(certs_dir)
        self.organization = organization
        self.validity_days = validity_days
        self.key_bits = key_bits
        self.openssl = openssl or OpenSSL()

    def init_serial_file(self) -> None:
        """Start the openssl serial counter for this CA."""
        self.serial_file.write_text(f"{INITIAL_SERIAL}\n")

    def subject_for(self, common_name: str) -> str:
        return f"/CN={common_name}/O={self.organization}"

    def issue(self, name: str, common_name: str) -> IssuedLeaf:
        """Generate, sign and verify a leaf certificate.

        Args:
            name: File stem for the leaf's key, CSR and certificate.
            common_name: CN placed in the leaf subject.

        Raises:
            LeafIssuanceError: If key, CSR or signing fails.
            ChainVerificationError: If the signed leaf does not verify.
        """
        leaf = IssuedLeaf(
            name=name,
            common_name=common_name,
            key_path=self.certs_dir / f"{name}.key",
            csr_path=self.certs_dir / f"{name}.csr",
            cert_path=self.certs_dir / f"{name}.crt",
        )

        with tracer.start_as_current_span("LeafIssuer.issue") as span:
            span.set_attribute("leaf_name", name)
            span.set_attribute("common_name", common_name)

            self._step(
                leaf,
                "generate key",
                lambda: self.openssl.genpkey_rsa(leaf.key_path, self.key_bits),
            )
            logger.info("leaf_key_generated", extra={"leaf": name, "path": str(leaf.key_path)})

            self._step(
                leaf,
                "generate CSR",
                lambda: self.openssl.req_new(
                    leaf.key_path, leaf.csr_path, self.subject_for(common_name)
                ),
            )
            logger.info("leaf_csr_generated", extra={"leaf": name, "path": str(leaf.csr_path)})

            self._step(
                leaf,
                "sign CSR",
                lambda: self.openssl.x509_sign(
                    leaf.csr_path,
                    self.ca_cert_path,
                    self.ca_key_path,
                    self.serial_file,
                    leaf.cert_path,
                    self.validity_days,
                ),
            )
            rootca_metrics.record_leaf_issued()
            logger.info("leaf_certificate_signed", extra={"leaf": name, "path": str(leaf.cert_path)})

            self.verify(leaf)
            return leaf

    def verify(self, leaf: IssuedLeaf) -> None:
        """Verify the leaf against the CA with openssl, then in-process."""
        try:
            self.openssl.verify(self.ca_cert_path, leaf.cert_path)
            verify_issued_by(self.ca_cert_path, leaf.cert_path)
        except OpenSSLError as e:
            rootca_metrics.record_chain_verification("invalid")
            raise ChainVerificationError(
                f"Verification FAILED for {leaf.name} certificate: {e}"
            ) from e
        except ChainVerificationError:
            rootca_metrics.record_chain_verification("invalid")
            raise

        rootca_metrics.record_chain_verification("valid")
        logger.info("leaf_chain_verified", extra={"leaf": leaf.name})

    def _step(self, leaf: IssuedLeaf, step: str, action) -> None:
        try:
            action()
        except OpenSSLError as e:
            logger.error(
                "leaf_issuance_failed",
                extra={"leaf": leaf.name, "step": step, "error": str(e)},
            )
            raise LeafIssuanceError(f"Failed to {step} for {leaf.name}: {e}") from e
