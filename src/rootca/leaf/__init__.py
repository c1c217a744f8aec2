"""Leaf certificate issuance through the openssl command line tool."""

from rootca.leaf.issuer import IssuedLeaf, LeafIssuer, verify_issued_by
from rootca.leaf.openssl import OpenSSL

__all__ = ["IssuedLeaf", "LeafIssuer", "OpenSSL", "verify_issued_by"]
