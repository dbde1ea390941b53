"""Core functionality for zonecert."""

from .logging import get_logger, setup_logging
from .errors import (
    ZoneCertError,
    ConfigurationError,
    StoreError,
    ParseError,
    ProtocolError,
    PendingDriftError,
    ReconciliationError,
    NotificationError,
)
from .acme_client import ACMEClient, ChallengeTransport, DNS01Provider, KeyType, TransportConfig
from .certificate_utils import CertificateUtils, CertificateInfo
from .storage import Account, CertificateResource, DirectoryStorage

__all__ = [
    "get_logger",
    "setup_logging",
    "ZoneCertError",
    "ConfigurationError",
    "StoreError",
    "ParseError",
    "ProtocolError",
    "PendingDriftError",
    "ReconciliationError",
    "NotificationError",
    "ACMEClient",
    "ChallengeTransport",
    "DNS01Provider",
    "KeyType",
    "TransportConfig",
    "CertificateUtils",
    "CertificateInfo",
    "Account",
    "CertificateResource",
    "DirectoryStorage",
]
