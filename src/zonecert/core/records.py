"""Desired-state DNS models shared by the coordinator and provider drivers."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError


DEFAULT_TTL = 300


@dataclass
class RecordConfig:
    """A single DNS record.

    ``name`` is the label relative to the zone ("@" for the apex),
    ``name_fqdn`` the absolute name without trailing dot. ``provider_id`` holds
    whatever identifier the provider assigned to the live record, so drivers
    never need to recover it from an opaque handle.
    """

    type: str
    name: str = "@"
    name_fqdn: str = ""
    target: str = ""
    ttl: int = DEFAULT_TTL
    metadata: Dict[str, str] = field(default_factory=dict)
    provider_id: Optional[str] = None

    def set_label(self, label: str, origin: str) -> None:
        origin = origin.lower().rstrip(".")
        label = label.lower()
        if label in ("@", ""):
            self.name = "@"
            self.name_fqdn = origin
        else:
            self.name = label
            self.name_fqdn = f"{label}.{origin}"

    def set_label_from_fqdn(self, fqdn: str, origin: str) -> None:
        fqdn = fqdn.lower().rstrip(".")
        origin = origin.lower().rstrip(".")
        if fqdn == origin:
            self.set_label("@", origin)
        elif fqdn.endswith("." + origin):
            self.set_label(fqdn[: -len(origin) - 1], origin)
        else:
            raise ConfigurationError(f"{fqdn} is not within zone {origin}")

    def set_target_txt(self, value: str) -> None:
        self.target = value

    def key(self) -> tuple:
        """Identity of the record for comparisons: name, type and target."""
        return (self.name_fqdn, self.type, self.target)

    def __str__(self) -> str:
        return f"{self.name_fqdn} {self.ttl} {self.type} {self.target}"


@dataclass
class Nameserver:
    name: str


@dataclass
class ProviderInstance:
    """A configured DNS provider attached to a domain."""

    name: str
    provider_type: str
    driver: Any
    number_of_nameservers: int = -1


@dataclass
class DomainConfig:
    """Desired configuration of one zone."""

    name: str
    records: List[RecordConfig] = field(default_factory=list)
    nameservers: List[Nameserver] = field(default_factory=list)
    provider_instances: List[ProviderInstance] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def clone(self) -> "DomainConfig":
        """Return a deep copy that shares nothing mutable with this config.

        Provider instances are shared: they wrap live driver objects owned by
        the provider manager and are never mutated per domain.
        """
        return DomainConfig(
            name=self.name,
            records=copy.deepcopy(self.records),
            nameservers=[Nameserver(ns.name) for ns in self.nameservers],
            provider_instances=list(self.provider_instances),
            metadata=dict(self.metadata),
        )


@dataclass
class DNSConfig:
    """All zones under management."""

    domains: List[DomainConfig] = field(default_factory=list)

    def domain_containing_fqdn(self, fqdn: str) -> DomainConfig:
        """Find the most specific configured zone that contains ``fqdn``.

        Raises:
            ConfigurationError: If no configured zone covers the name
        """
        fqdn = fqdn.lower().rstrip(".")
        best: Optional[DomainConfig] = None
        for domain in self.domains:
            name = domain.name.lower().rstrip(".")
            if fqdn == name or fqdn.endswith("." + name):
                if best is None or len(name) > len(best.name):
                    best = domain
        if best is None:
            raise ConfigurationError(f"hostname {fqdn} is not covered by any domain in your config")
        return best
