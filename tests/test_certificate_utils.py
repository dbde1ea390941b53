"""Tests for certificate parsing helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_cert


class TestDNSNamesEqual:
    """Tests for SAN set comparison."""

    def test_order_does_not_matter(self):
        """Test permutations of the same names are equal."""
        from zonecert.core.certificate_utils import dns_names_equal

        assert dns_names_equal(["b.test", "a.test"], ["a.test", "b.test"])

    def test_length_mismatch(self):
        """Test duplicates make the lists different."""
        from zonecert.core.certificate_utils import dns_names_equal

        assert not dns_names_equal(["a.test", "a.test"], ["a.test"])
        assert not dns_names_equal(["a.test"], ["a.test", "b.test"])

    def test_case_insensitive(self):
        """Test names compare without case."""
        from zonecert.core.certificate_utils import dns_names_equal

        assert dns_names_equal(["WWW.example.com"], ["www.example.com"])

    def test_does_not_reorder_inputs(self):
        """Test the caller's lists are left untouched."""
        from zonecert.core.certificate_utils import dns_names_equal

        names = ["b.test", "a.test"]
        dns_names_equal(names, ["a.test", "b.test"])
        assert names == ["b.test", "a.test"]


class TestGetCertInfo:
    """Tests for extracting names and remaining lifetime."""

    def test_names_and_fractional_days(self):
        """Test SANs and days remaining are extracted."""
        from zonecert.core.certificate_utils import get_cert_info

        pem = make_cert(["example.com", "www.example.com"], days=10.5)
        names, days = get_cert_info(pem)

        assert names == ["example.com", "www.example.com"]
        assert 10.4 < days <= 10.5

    def test_days_relative_to_now(self):
        """Test the reference time can be supplied."""
        from zonecert.core.certificate_utils import days_until

        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert days_until(now + timedelta(hours=36), now) == 1.5
        assert days_until(now - timedelta(days=2), now) == -2

    def test_uses_first_certificate_of_bundle(self):
        """Test the leaf is read from a full chain."""
        from zonecert.core.certificate_utils import get_cert_info

        bundle = make_cert(["leaf.test"], 30) + make_cert(["intermediate.test"], 300)
        names, days = get_cert_info(bundle)

        assert names == ["leaf.test"]
        assert days < 31

    def test_invalid_pem(self):
        """Test malformed data raises ParseError."""
        from zonecert.core.certificate_utils import get_cert_info
        from zonecert.core.errors import ParseError

        with pytest.raises(ParseError):
            get_cert_info(b"not a certificate")
        with pytest.raises(ParseError):
            get_cert_info(b"-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n")

    def test_certificate_without_sans(self):
        """Test a certificate without SANs yields no names."""
        from zonecert.core.certificate_utils import get_cert_info

        names, _ = get_cert_info(make_cert([], 10))
        assert names == []


class TestSplitPemChain:
    """Tests for splitting PEM bundles."""

    def test_split(self):
        """Test each certificate becomes one block."""
        from zonecert.core.certificate_utils import split_pem_chain

        bundle = make_cert(["a.test"]) + make_cert(["b.test"])
        blocks = split_pem_chain(bundle)

        assert len(blocks) == 2
        assert all(b.startswith(b"-----BEGIN CERTIFICATE-----") for b in blocks)

    def test_empty(self):
        """Test data without certificates yields nothing."""
        from zonecert.core.certificate_utils import split_pem_chain

        assert split_pem_chain(b"") == []


class TestCertificateUtils:
    """Tests for CertificateUtils."""

    def test_parse_certificate(self):
        """Test parsing returns certificate details."""
        from zonecert.core.certificate_utils import CertificateUtils

        info = CertificateUtils().parse_certificate(make_cert(["example.com"], 90), "web")

        assert info.name == "web"
        assert info.domains == ["example.com"]
        assert info.status == "valid"
        assert "CN=example.com" in info.subject
        assert len(info.fingerprint_sha256) == 64
        assert info.to_dict()["days_remaining"] == round(info.days_remaining, 2)

    def test_parse_expiring(self):
        """Test the expiring_soon status."""
        from zonecert.core.certificate_utils import CertificateUtils

        info = CertificateUtils(expiring_days=30).parse_certificate(make_cert(["a.test"], 5))
        assert info.status == "expiring_soon"

    def test_parse_expired(self):
        """Test the expired status."""
        from zonecert.core.certificate_utils import CertificateUtils

        info = CertificateUtils().parse_certificate(make_cert(["a.test"], -0.5))
        assert info.status == "expired"

    def test_check_expiry(self):
        """Test expiry check against a threshold."""
        from zonecert.core.certificate_utils import CertificateUtils

        utils = CertificateUtils()
        pem = make_cert(["a.test"], 20)

        assert utils.check_expiry(pem, 15)["status"] == "valid"
        result = utils.check_expiry(pem, 30)
        assert result["status"] == "expiring_soon"
        assert result["threshold_days"] == 30
