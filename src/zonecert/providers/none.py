"""Provider that serves nothing and never changes anything."""

from typing import List, Tuple

from .base import DNSProvider
from ..core.reconcile import Correction
from ..core.records import DomainConfig, Nameserver, RecordConfig


class NoneProvider(DNSProvider):
    """Placeholder driver for zones whose records are managed elsewhere."""

    PROVIDER_TYPE = "NONE"

    def get_nameservers(self, domain: str) -> List[Nameserver]:
        return []

    def get_zone_records(self, domain: str) -> List[RecordConfig]:
        return []

    def get_zone_records_corrections(
        self,
        domain: DomainConfig,
        existing: List[RecordConfig]
    ) -> Tuple[List[Correction], int]:
        return [], 0
