"""Interfaces to the desired-state reconciliation engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .records import DomainConfig


@dataclass
class Correction:
    """One unit of provider-side work produced by reconciliation.

    A correction without an action is informational only.
    """

    description: str
    action: Optional[Callable[[], None]] = None

    @property
    def is_report(self) -> bool:
        return self.action is None

    def run(self) -> None:
        if self.action is not None:
            self.action()


@dataclass
class ReconcileResult:
    reports: List[Correction] = field(default_factory=list)
    corrections: List[Correction] = field(default_factory=list)
    change_count: int = 0


class Reconciler(ABC):
    """Computes the corrections needed to bring a provider in line with a domain."""

    @abstractmethod
    def reconcile(self, driver, domain: DomainConfig) -> ReconcileResult:
        """Compare ``domain`` with what ``driver`` currently serves.

        Args:
            driver: Provider driver for one provider instance
            domain: Desired configuration; may be normalized in place

        Returns:
            Reports, executable corrections and the substantive change count
        """


class ZoneRecordsReconciler(Reconciler):
    """Default engine: the driver lists live records and computes its own diff."""

    def reconcile(self, driver, domain: DomainConfig) -> ReconcileResult:
        existing = driver.get_zone_records(domain.name)
        items, change_count = driver.get_zone_records_corrections(domain, existing)
        result = ReconcileResult(change_count=change_count)
        for item in items:
            if item.is_report:
                result.reports.append(item)
            else:
                result.corrections.append(item)
        return result
