"""Base DNS provider driver interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from ..core.logging import get_logger
from ..core.reconcile import Correction
from ..core.records import DomainConfig, Nameserver, RecordConfig


class DNSProvider(ABC):
    """Abstract base class for DNS provider drivers.

    Drivers talk to one provider account. They are shared between domains
    and may be called from several threads at once.
    """

    PROVIDER_TYPE: str = "unknown"

    def __init__(self, name: str, settings: Dict[str, Any]):
        """Initialize provider driver.

        Args:
            name: Provider instance name from the configuration
            settings: Provider specific settings
        """
        self.name = name
        self.settings = settings
        self.logger = get_logger(f"providers.{self.PROVIDER_TYPE.lower()}.{name}")

    @abstractmethod
    def get_nameservers(self, domain: str) -> List[Nameserver]:
        """Return the nameservers the provider serves ``domain`` from."""

    @abstractmethod
    def get_zone_records(self, domain: str) -> List[RecordConfig]:
        """Return the live records of ``domain``.

        Records should carry the provider's identifier in ``provider_id``.
        """

    @abstractmethod
    def get_zone_records_corrections(
        self,
        domain: DomainConfig,
        existing: List[RecordConfig]
    ) -> Tuple[List[Correction], int]:
        """Compute corrections turning ``existing`` into ``domain.records``.

        Returns:
            Corrections in execution order (deletions, then creations, then
            modifications; informational entries have no action) and the
            number of substantive changes
        """

    def get_provider_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "provider_type": self.PROVIDER_TYPE,
        }
