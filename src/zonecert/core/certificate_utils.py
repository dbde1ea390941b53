"""Certificate parsing and utility functions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Sequence, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import ExtensionOID, NameOID

from .errors import ParseError
from .logging import get_logger


PEM_CERT_BEGIN = b"-----BEGIN CERTIFICATE-----"
ONE_DAY = timedelta(days=1)


@dataclass
class CertificateInfo:
    """Certificate information container."""

    name: str
    subject: str
    issuer: str
    serial_number: str
    not_valid_before: datetime
    not_valid_after: datetime
    domains: List[str] = field(default_factory=list)
    fingerprint_sha256: str = ""
    key_type: str = ""
    days_remaining: float = 0.0
    status: str = "valid"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "subject": self.subject,
            "issuer": self.issuer,
            "serial_number": self.serial_number,
            "not_valid_before": self.not_valid_before.isoformat(),
            "not_valid_after": self.not_valid_after.isoformat(),
            "domains": self.domains,
            "fingerprint_sha256": self.fingerprint_sha256,
            "key_type": self.key_type,
            "days_remaining": round(self.days_remaining, 2),
            "status": self.status,
        }


def dns_names_equal(a: Sequence[str], b: Sequence[str]) -> bool:
    """Check two lists of SANs contain the same names, ignoring order.

    Lists of different length never match, even if one is a permutation of
    the other plus duplicates.
    """
    if len(a) != len(b):
        return False
    return sorted(n.lower() for n in a) == sorted(n.lower() for n in b)


def days_until(moment: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days from ``now`` until ``moment``."""
    now = now or datetime.now(timezone.utc)
    return (moment - now) / ONE_DAY


def load_first_certificate(pem_data: bytes) -> x509.Certificate:
    """Load the leaf certificate from a PEM bundle.

    Raises:
        ParseError: If the data holds no valid PEM certificate
    """
    if not pem_data or PEM_CERT_BEGIN not in pem_data:
        raise ParseError("invalid certificate PEM data")
    try:
        return x509.load_pem_x509_certificate(pem_data)
    except ValueError as e:
        raise ParseError(f"invalid certificate PEM data: {e}") from e


def get_cert_info(pem_data: bytes, now: Optional[datetime] = None) -> Tuple[List[str], float]:
    """Return the DNS SANs and fractional days remaining of a PEM certificate."""
    cert = load_first_certificate(pem_data)
    return dns_names(cert), days_until(cert.not_valid_after_utc, now)


def split_pem_chain(pem_data: bytes) -> List[bytes]:
    """Split a PEM bundle into individual certificate blocks."""
    blocks = []
    end_marker = b"-----END CERTIFICATE-----"
    data = pem_data
    while PEM_CERT_BEGIN in data:
        start = data.find(PEM_CERT_BEGIN)
        end = data.find(end_marker, start)
        if end < 0:
            break
        end += len(end_marker)
        blocks.append(data[start:end] + b"\n")
        data = data[end:]
    return blocks


def issuer_common_name(cert: x509.Certificate) -> str:
    attrs = cert.issuer.get_attributes_for_oid(NameOID.COMMON_NAME)
    return attrs[0].value if attrs else ""


def dns_names(cert: x509.Certificate) -> List[str]:
    try:
        san_ext = cert.extensions.get_extension_for_oid(
            ExtensionOID.SUBJECT_ALTERNATIVE_NAME
        )
    except x509.ExtensionNotFound:
        return []
    return san_ext.value.get_values_for_type(x509.DNSName)


class CertificateUtils:
    """Utility class for certificate operations."""

    def __init__(self, expiring_days: int = 30):
        self.expiring_days = expiring_days
        self.logger = get_logger("certificate_utils")

    def parse_certificate(
        self,
        cert_pem: bytes,
        name: str = "unknown"
    ) -> CertificateInfo:
        """Parse a PEM-encoded certificate.

        Args:
            cert_pem: PEM-encoded certificate (the first block of a bundle is used)
            name: Certificate name/identifier

        Returns:
            CertificateInfo object

        Raises:
            ParseError: If the PEM data is malformed
        """
        cert = load_first_certificate(cert_pem)

        now = datetime.now(timezone.utc)
        days_remaining = days_until(cert.not_valid_after_utc, now)

        if now < cert.not_valid_before_utc:
            status = "not_yet_valid"
        elif now > cert.not_valid_after_utc:
            status = "expired"
        elif days_remaining <= self.expiring_days:
            status = "expiring_soon"
        else:
            status = "valid"

        return CertificateInfo(
            name=name,
            subject=cert.subject.rfc4514_string(),
            issuer=cert.issuer.rfc4514_string(),
            serial_number=format(cert.serial_number, 'X'),
            not_valid_before=cert.not_valid_before_utc,
            not_valid_after=cert.not_valid_after_utc,
            domains=dns_names(cert),
            fingerprint_sha256=cert.fingerprint(hashes.SHA256()).hex().upper(),
            key_type=type(cert.public_key()).__name__.lstrip("_"),
            days_remaining=days_remaining,
            status=status,
        )

    def check_expiry(
        self,
        cert_pem: bytes,
        days_threshold: int = 30
    ) -> dict:
        """Check certificate expiry status.

        Args:
            cert_pem: PEM-encoded certificate
            days_threshold: Days before expiry to warn

        Returns:
            Expiry status dict
        """
        cert = load_first_certificate(cert_pem)
        days_remaining = days_until(cert.not_valid_after_utc)

        if days_remaining < 0:
            status = "expired"
        elif days_remaining < days_threshold:
            status = "expiring_soon"
        else:
            status = "valid"

        return {
            "status": status,
            "days_remaining": round(days_remaining, 2),
            "expiry_date": cert.not_valid_after_utc.isoformat(),
            "threshold_days": days_threshold
        }
