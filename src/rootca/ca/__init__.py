"""Certificate Authority module for the root CA generator.

This module provides:
- Root CA template construction and self-signing
- PEM export with restrictive key file permissions
- Serial number and thumbprint helpers
"""

from rootca.ca.pem import export_to_pem, load_root_ca
from rootca.ca.root import CAConfig, GeneratedRootCA, generate_root_ca

__all__ = ["CAConfig", "GeneratedRootCA", "export_to_pem", "generate_root_ca", "load_root_ca"]
