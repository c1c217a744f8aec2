"""Thin wrapper around the openssl command line tool.

Leaf certificates are issued with the external toolkit rather than in-process,
so the root CA is exercised by an independent X.509 implementation.
"""

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class OpenSSLError(Exception):
    """Raised when an openssl command exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"openssl {command[1]} failed with exit code {returncode}: {detail}")


class OpenSSLNotFoundError(Exception):
    """Raised when the openssl binary is not available."""

    pass


class OpenSSL:
    """Runs openssl subcommands for key, CSR and certificate handling."""

    def __init__(self, binary: str = "openssl") -> None:
        self.binary = binary

    def check_available(self) -> str:
        """Return the resolved binary path or raise if it is not on PATH."""
        resolved = shutil.which(self.binary)
        if resolved is None:
            raise OpenSSLNotFoundError(
                f"Command {self.binary!r} not found. Please install it or check your PATH."
            )
        return resolved

    def run(self, *args: str) -> str:
        """Run an openssl subcommand and return its stdout."""
        command = [self.binary, *args]
        logger.debug("openssl_command", extra={"command": " ".join(command)})
        result = subprocess.run(command, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise OpenSSLError(command, result.returncode, result.stderr)
        return result.stdout

    def genpkey_rsa(self, key_path: Path, bits: int) -> None:
        self.run(
            "genpkey",
            "-algorithm",
            "RSA",
            "-out",
            str(key_path),
            "-pkeyopt",
            f"rsa_keygen_bits:{bits}",
        )

    def req_new(self, key_path: Path, csr_path: Path, subject: str) -> None:
        self.run("req", "-new", "-key", str(key_path), "-out", str(csr_path), "-subj", subject)

    def x509_sign(
        self,
        csr_path: Path,
        ca_cert_path: Path,
        ca_key_path: Path,
        serial_file: Path,
        cert_path: Path,
        days: int,
    ) -> None:
        """Sign a CSR with the CA. openssl bumps the serial file after each use."""
        self.run(
            "x509",
            "-req",
            "-in",
            str(csr_path),
            "-CA",
            str(ca_cert_path),
            "-CAkey",
            str(ca_key_path),
            "-CAserial",
            str(serial_file),
            "-out",
            str(cert_path),
            "-days",
            str(days),
            "-sha256",
        )

    def verify(self, ca_cert_path: Path, cert_path: Path) -> str:
        return self.run("verify", "-CAfile", str(ca_cert_path), str(cert_path))
