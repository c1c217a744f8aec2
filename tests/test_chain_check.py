"""Tests for the end-to-end chain check."""

import shutil
from unittest.mock import MagicMock, patch

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from rootca.chain_check import (
    CA_CERT_NAME,
    CA_CN,
    CA_KEY_NAME,
    CA_SERIAL_NAME,
    ChainCheckError,
    run_chain_check,
)
from rootca.leaf.issuer import IssuedLeaf
from rootca.leaf.openssl import OpenSSL, OpenSSLNotFoundError


class TestChainCheckUnit:
    """Chain check with leaf issuance mocked out."""

    @pytest.fixture
    def mock_issuer_cls(self):
        with patch("rootca.chain_check.LeafIssuer") as MockIssuer:
            instance = MockIssuer.return_value
            instance.issue.side_effect = lambda name, cn: IssuedLeaf(
                name=name,
                common_name=cn,
                key_path=MagicMock(),
                csr_path=MagicMock(),
                cert_path=MagicMock(),
            )
            yield MockIssuer

    def test_missing_openssl_stops_before_any_work(self, tmp_path):
        openssl = MagicMock(spec=OpenSSL)
        openssl.check_available.side_effect = OpenSSLNotFoundError("not found")

        with pytest.raises(OpenSSLNotFoundError):
            run_chain_check(tmp_path / "pki", openssl=openssl)

        assert not (tmp_path / "pki").exists()

    def test_generates_root_ca_and_issues_default_leaves(self, tmp_path, mock_issuer_cls):
        base_dir = tmp_path / "pki"

        report = run_chain_check(base_dir, openssl=MagicMock(spec=OpenSSL), ca_key_bits=2048)

        assert report.ca_cert_path == base_dir / "ca" / CA_CERT_NAME
        assert report.ca_key_path == base_dir / "ca" / CA_KEY_NAME
        assert report.ca_cert_path.is_file()
        assert report.ca_key_path.is_file()
        assert (base_dir / "certs").is_dir()

        cert = x509.load_pem_x509_certificate(report.ca_cert_path.read_bytes())
        assert cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value == CA_CN
        assert (cert.not_valid_after_utc - cert.not_valid_before_utc).days == 1825

        instance = mock_issuer_cls.return_value
        instance.init_serial_file.assert_called_once()
        assert [c.args for c in instance.issue.call_args_list] == [
            ("server1", "test.server1.local"),
            ("clientA", "client.a.user"),
        ]
        assert [leaf.name for leaf in report.leaves] == ["server1", "clientA"]
        assert mock_issuer_cls.call_args.kwargs["serial_file"] == base_dir / "ca" / CA_SERIAL_NAME

    def test_clean_removes_previous_run(self, tmp_path, mock_issuer_cls):
        base_dir = tmp_path / "pki"
        stale = base_dir / "certs" / "stale.crt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        run_chain_check(base_dir, openssl=MagicMock(spec=OpenSSL), ca_key_bits=2048)

        assert not stale.exists()

    def test_keep_preserves_previous_run(self, tmp_path, mock_issuer_cls):
        base_dir = tmp_path / "pki"
        stale = base_dir / "certs" / "stale.crt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        run_chain_check(base_dir, openssl=MagicMock(spec=OpenSSL), clean=False, ca_key_bits=2048)

        assert stale.exists()

    def test_missing_ca_files_raise(self, tmp_path, mock_issuer_cls):
        with patch("rootca.chain_check.export_to_pem"):
            with pytest.raises(ChainCheckError, match="Root CA files"):
                run_chain_check(tmp_path / "pki", openssl=MagicMock(spec=OpenSSL), ca_key_bits=2048)

        mock_issuer_cls.return_value.issue.assert_not_called()

    def test_base_dir_over_file_is_chain_check_error(self, tmp_path, mock_issuer_cls):
        base_dir = tmp_path / "pki"
        base_dir.write_text("not a directory")

        with pytest.raises(ChainCheckError, match="Failed to set up") as exc_info:
            run_chain_check(base_dir, openssl=MagicMock(spec=OpenSSL), ca_key_bits=2048)

        assert isinstance(exc_info.value.__cause__, OSError)
        mock_issuer_cls.assert_not_called()

    def test_unwritable_base_dir_with_keep_is_chain_check_error(self, tmp_path, mock_issuer_cls):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(ChainCheckError, match="Failed to set up"):
            run_chain_check(
                blocker / "pki", openssl=MagicMock(spec=OpenSSL), clean=False, ca_key_bits=2048
            )

        mock_issuer_cls.assert_not_called()

    def test_serial_file_failure_is_chain_check_error(self, tmp_path, mock_issuer_cls):
        instance = mock_issuer_cls.return_value
        instance.init_serial_file.side_effect = PermissionError("read-only")

        with pytest.raises(ChainCheckError, match="serial file"):
            run_chain_check(tmp_path / "pki", openssl=MagicMock(spec=OpenSSL), ca_key_bits=2048)

        instance.issue.assert_not_called()


@pytest.mark.skipif(shutil.which("openssl") is None, reason="openssl binary not installed")
class TestChainCheckOpenSSL:
    def test_full_chain_check(self, tmp_path):
        report = run_chain_check(tmp_path / "pki_test", ca_key_bits=2048)

        assert len(report.leaves) == 2
        for leaf in report.leaves:
            assert leaf.cert_path.is_file()
            assert leaf.key_path.is_file()
            assert leaf.csr_path.is_file()
