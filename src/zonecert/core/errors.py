"""Exception hierarchy for zonecert."""

from typing import List, Optional


class ZoneCertError(Exception):
    """Base class for all zonecert errors."""


class ConfigurationError(ZoneCertError):
    """Invalid configuration such as a bad ACME directory URL."""


class StoreError(ZoneCertError):
    """An account or certificate store could not be read or written."""


class ParseError(ZoneCertError):
    """Stored certificate data is malformed."""


class ProtocolError(ZoneCertError):
    """The certificate authority rejected a request."""


class PendingDriftError(ZoneCertError):
    """A zone has unapplied corrections before any challenge record is published."""

    def __init__(self, zone: str, corrections: List[str]):
        self.zone = zone
        self.corrections = list(corrections)
        super().__init__(
            f"found {len(self.corrections)} pending corrections for {zone}. "
            "Not going to proceed issuing certificates"
        )

    @property
    def count(self) -> int:
        return len(self.corrections)


class ReconciliationError(ZoneCertError):
    """Computing or executing corrections for a zone failed."""

    def __init__(self, zone: str, message: str, correction: Optional[str] = None):
        self.zone = zone
        self.correction = correction
        super().__init__(f"{zone}: {message}")


class NotificationError(ReconciliationError):
    """The notifier failed to report a correction outcome."""
