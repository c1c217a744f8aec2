"""Command line entry points.

``rootca`` generates a self-signed root CA certificate and private key.
``rootca-chain-check`` issues leaf certificates against a fresh root CA with
openssl and verifies the chain.
"""

import argparse
import logging
import sys
from pathlib import Path

from shared.config import settings
from shared.logging import setup_logging
from shared.metrics import setup_metrics
from shared.tracing import setup_tracing

from rootca.ca.pem import PEMExportError, ensure_output_dir, export_to_pem
from rootca.ca.root import (
    CAConfig,
    CAConfigError,
    RootCAGenerationError,
    generate_root_ca,
    validate_config,
)
from rootca.chain_check import ChainCheckError, run_chain_check
from rootca.leaf.issuer import ChainVerificationError, LeafIssuanceError
from rootca.leaf.openssl import OpenSSL, OpenSSLNotFoundError

logger = logging.getLogger(__name__)

BANNER = "Root CA Generator"
USAGE_EXAMPLE = (
    'Example:\n  %(prog)s -cn="My Test CA" -org="Test Org" -days=730 -bits=4096 -out=./my_ca\n\n'
    "If required flags are omitted, you will be prompted interactively."
)


def setup_telemetry() -> None:
    setup_logging()
    setup_tracing(settings.APP_NAME)
    setup_metrics(settings.APP_NAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rootca",
        description="Generates a self-signed root CA certificate and private key.",
        epilog=USAGE_EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-cn",
        "--cn",
        dest="common_name",
        default="",
        help="Required: Common Name (CN) for the CA (e.g., 'My Corp Root CA')",
    )
    parser.add_argument(
        "-org",
        "--org",
        dest="organization",
        default=None,
        help="Optional: Organization (O) for the CA (e.g., 'My Corp')",
    )
    parser.add_argument(
        "-days",
        "--days",
        dest="validity_days",
        type=int,
        default=settings.CA_VALIDITY_DAYS,
        help="Validity period in days (default: %(default)s)",
    )
    parser.add_argument(
        "-bits",
        "--bits",
        dest="key_bit_size",
        type=int,
        default=settings.CA_KEY_BITS,
        help="RSA key size in bits, e.g. 2048 or 4096 (default: %(default)s)",
    )
    parser.add_argument(
        "-out",
        "--out",
        dest="output_dir",
        default=settings.CA_OUTPUT_DIR,
        help="Directory to save the certificate and key files (default: %(default)s)",
    )
    parser.add_argument(
        "-cert-name",
        "--cert-name",
        dest="cert_name",
        default=settings.CA_CERT_NAME,
        help="Filename for the CA certificate PEM file (default: %(default)s)",
    )
    parser.add_argument(
        "-key-name",
        "--key-name",
        dest="key_name",
        default=settings.CA_KEY_NAME,
        help="Filename for the CA private key PEM file (default: %(default)s)",
    )
    return parser


def prompt_user(prompt_text: str, default_value: str = "") -> str:
    """Ask for a value on the terminal. Empty input returns the default."""
    try:
        answer = input(prompt_text).strip()
    except EOFError:
        answer = ""
    return answer or default_value


def config_from_args(args: argparse.Namespace, interactive: bool) -> CAConfig:
    """Build the CA config, prompting for missing values when interactive."""
    common_name = args.common_name.strip()
    if not common_name and interactive:
        common_name = prompt_user(
            "Enter Common Name (CN) for the CA (e.g., 'My Dev Root CA'): "
        )

    organization = args.organization
    if organization is None:
        organization = ""
        if interactive:
            organization = prompt_user(
                "Enter Organization (O) (optional, press Enter to skip): "
            )

    output_dir = Path(args.output_dir)
    return CAConfig(
        common_name=common_name,
        organization=organization,
        validity_days=args.validity_days,
        key_bit_size=args.key_bit_size,
        cert_output_file=str(output_dir / args.cert_name),
        key_output_file=str(output_dir / args.key_name),
    )


def main(argv: list[str] | None = None) -> int:
    print(BANNER)
    print("-" * 40)

    args = build_parser().parse_args(argv)
    setup_telemetry()

    config = config_from_args(args, interactive=sys.stdin.isatty())

    try:
        for warning in validate_config(config):
            print(f"Warning: {warning}")

        ensure_output_dir(args.output_dir)

        print("\nGenerating Root CA...")
        print(f"  Common Name: {config.common_name}")
        if config.organization:
            print(f"  Organization: {config.organization}")
        print(f"  Validity: {config.validity_days} days")
        print(f"  Key Size: {config.key_bit_size} bits")
        print(f"  Output Cert: {config.cert_output_file}")
        print(f"  Output Key: {config.key_output_file}")

        root = generate_root_ca(config)
        print("CA certificate and private key generated successfully.")

        print("\nExporting to PEM format...")
        export_to_pem(
            root.certificate,
            root.private_key,
            config.cert_output_file,
            config.key_output_file,
        )
    except (CAConfigError, RootCAGenerationError, PEMExportError) as e:
        logger.error("rootca_failed", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\nSuccess!")
    print(f"  Serial Number: {root.serial_number}")
    print(f"  SHA-256 Fingerprint: {root.thumbprint}")
    print(f"  Valid Until: {root.not_after.isoformat()}")
    print(f"  CA Certificate saved to: {config.cert_output_file}")
    print(f"  CA Private Key saved to: {config.key_output_file} (Keep this file secure!)")
    return 0


def build_chain_check_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rootca-chain-check",
        description=(
            "Generates a root CA, issues server and client leaf certificates "
            "against it with openssl and verifies the chain."
        ),
    )
    parser.add_argument(
        "--base-dir",
        default=settings.CHAIN_CHECK_DIR,
        help="Directory to store all generated files (default: %(default)s)",
    )
    parser.add_argument(
        "--openssl",
        default=settings.OPENSSL_BIN,
        help="openssl binary to use (default: %(default)s)",
    )
    parser.add_argument(
        "--keep",
        dest="clean",
        action="store_false",
        help="Keep an existing base directory instead of wiping it first",
    )
    parser.add_argument(
        "--ca-bits",
        type=int,
        default=settings.CA_KEY_BITS,
        help="Root CA RSA key size in bits (default: %(default)s)",
    )
    return parser


def _info(message: str) -> None:
    print(f"[INFO] {message}")


def chain_check_main(argv: list[str] | None = None) -> int:
    args = build_chain_check_parser().parse_args(argv)
    setup_telemetry()

    _info(f"Running chain check in '{args.base_dir}'...")
    try:
        report = run_chain_check(
            args.base_dir,
            openssl=OpenSSL(args.openssl),
            clean=args.clean,
            ca_key_bits=args.ca_bits,
            leaf_org=settings.LEAF_ORG,
            leaf_validity_days=settings.LEAF_VALIDITY_DAYS,
            leaf_key_bits=settings.LEAF_KEY_BITS,
        )
    except (
        OpenSSLNotFoundError,
        ChainCheckError,
        CAConfigError,
        RootCAGenerationError,
        PEMExportError,
        LeafIssuanceError,
        ChainVerificationError,
    ) as e:
        logger.error("chain_check_failed", extra={"error": str(e)})
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    _info("-" * 43)
    _info("Chain Check Completed Successfully!")
    _info(f"All generated files are in '{report.base_dir}'")
    _info(f"Root CA Cert: {report.ca_cert_path}")
    _info(f"Root CA Key:  {report.ca_key_path} (Keep Secure!)")
    for leaf in report.leaves:
        _info(f"{leaf.name} Cert: {leaf.cert_path}")
        _info(f"{leaf.name} Key:  {leaf.key_path}")
    _info("-" * 43)
    return 0


if __name__ == "__main__":
    sys.exit(main())
