"""End-to-end chain check: root CA in-process, leaves via openssl.

Generates a root CA into ``<base>/ca``, issues a server and a client leaf
into ``<base>/certs`` and verifies both against the root.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from opentelemetry import trace

from rootca.ca.pem import PEMExportError, ensure_output_dir, export_to_pem
from rootca.ca.root import CAConfig, generate_root_ca
from rootca.leaf.issuer import IssuedLeaf, LeafIssuer
from rootca.leaf.openssl import OpenSSL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CA_CN = "My Test Root CA - Scripted"
CA_ORG = "Test Script Org"
CA_CERT_NAME = "root-ca.crt"
CA_KEY_NAME = "root-ca.key"
CA_SERIAL_NAME = "root-ca.srl"
CA_VALIDITY_DAYS = 1825

# (file stem, common name)
DEFAULT_LEAVES = (
    ("server1", "test.server1.local"),
    ("clientA", "client.a.user"),
)


class ChainCheckError(Exception):
    """Raised when the chain check cannot set up or produce the root CA."""

    pass


@dataclass
class ChainCheckReport:
    base_dir: Path
    ca_cert_path: Path
    ca_key_path: Path
    leaves: list[IssuedLeaf] = field(default_factory=list)


def run_chain_check(
    base_dir: str | Path,
    openssl: OpenSSL | None = None,
    clean: bool = True,
    ca_key_bits: int = 4096,
    leaf_org: str = CA_ORG,
    leaf_validity_days: int = LeafIssuer.DEFAULT_VALIDITY_DAYS,
    leaf_key_bits: int = LeafIssuer.DEFAULT_KEY_BITS,
    leaves: tuple[tuple[str, str], ...] = DEFAULT_LEAVES,
) -> ChainCheckReport:
    """Run the chain check and return the paths of everything produced.

    Raises:
        OpenSSLNotFoundError: If openssl is not installed.
        ChainCheckError: If the base directory or serial file cannot be set up,
            or the root CA files are not produced.
        LeafIssuanceError, ChainVerificationError: From leaf issuance.
    """
    openssl = openssl or OpenSSL()
    openssl.check_available()

    base_dir = Path(base_dir)
    ca_dir = base_dir / "ca"
    certs_dir = base_dir / "certs"

    with tracer.start_as_current_span("run_chain_check") as span:
        span.set_attribute("base_dir", str(base_dir))

        logger.info("chain_check_setup", extra={"base_dir": str(base_dir), "clean": clean})
        try:
            if clean and base_dir.exists():
                shutil.rmtree(base_dir)
            ensure_output_dir(ca_dir)
            ensure_output_dir(certs_dir)
        except (OSError, PEMExportError) as e:
            raise ChainCheckError(f"Failed to set up {str(base_dir)!r}: {e}") from e

        ca_cert_path = ca_dir / CA_CERT_NAME
        ca_key_path = ca_dir / CA_KEY_NAME

        config = CAConfig(
            common_name=CA_CN,
            organization=CA_ORG,
            validity_days=CA_VALIDITY_DAYS,
            key_bit_size=ca_key_bits,
            cert_output_file=str(ca_cert_path),
            key_output_file=str(ca_key_path),
        )
        root = generate_root_ca(config)
        export_to_pem(root.certificate, root.private_key, ca_cert_path, ca_key_path)

        if not ca_cert_path.is_file() or not ca_key_path.is_file():
            raise ChainCheckError("Failed to generate Root CA files.")
        logger.info(
            "chain_check_root_ca_ready",
            extra={"cert_path": str(ca_cert_path), "key_path": str(ca_key_path)},
        )

        issuer = LeafIssuer(
            ca_cert_path=ca_cert_path,
            ca_key_path=ca_key_path,
            serial_file=ca_dir / CA_SERIAL_NAME,
            certs_dir=certs_dir,
            organization=leaf_org,
            validity_days=leaf_validity_days,
            key_bits=leaf_key_bits,
            openssl=openssl,
        )
        try:
            issuer.init_serial_file()
        except OSError as e:
            raise ChainCheckError(f"Failed to initialise serial file: {e}") from e

        report = ChainCheckReport(
            base_dir=base_dir,
            ca_cert_path=ca_cert_path,
            ca_key_path=ca_key_path,
        )
        for name, common_name in leaves:
            report.leaves.append(issuer.issue(name, common_name))

        logger.info("chain_check_completed", extra={"leaves": len(report.leaves)})
        return report
