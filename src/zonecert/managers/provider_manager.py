"""Provider manager for DNS provider drivers."""

from importlib.metadata import entry_points
from typing import Any, Dict, List, Optional, Type

from ..config.models import DomainModel, ProviderConfig
from ..core.errors import ConfigurationError
from ..core.logging import get_logger
from ..core.records import DNSConfig, DomainConfig, Nameserver, ProviderInstance, RecordConfig
from ..providers.base import DNSProvider
from ..providers.none import NoneProvider


ENTRY_POINT_GROUP = "zonecert.providers"


class ProviderManager:
    """Builds provider drivers and the runtime DNS configuration."""

    PROVIDER_TYPES: Dict[str, Type[DNSProvider]] = {
        "NONE": NoneProvider,
    }

    def __init__(self, providers_config: Optional[Dict[str, ProviderConfig]] = None):
        """Initialize provider manager.

        Args:
            providers_config: Provider instance name -> configuration

        Raises:
            ConfigurationError: If a provider type is unknown
        """
        self.logger = get_logger("provider_manager")
        self._drivers: Dict[str, DNSProvider] = {}
        self._types: Dict[str, Type[DNSProvider]] = dict(self.PROVIDER_TYPES)
        self._load_entry_points()

        if providers_config:
            for name, config in providers_config.items():
                self._register_provider(name, config)
            self.logger.info(f"Loaded {len(self._drivers)} providers")

    @classmethod
    def register_provider_type(cls, provider_type: str, driver_class: Type[DNSProvider]) -> None:
        """Make ``driver_class`` available to every manager created afterwards."""
        cls.PROVIDER_TYPES[provider_type.upper()] = driver_class

    def _load_entry_points(self) -> None:
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name.upper()
            if name in self._types:
                continue
            try:
                self._types[name] = ep.load()
            except Exception as e:
                self.logger.error(f"Failed to load provider type {ep.name}: {e}")

    def _register_provider(self, name: str, config: ProviderConfig) -> None:
        driver_class = self._types.get(config.type.upper())
        if driver_class is None:
            raise ConfigurationError(
                f"Unknown provider type {config.type} for {name}. "
                f"Valid types: {self.get_provider_types()}"
            )
        self._drivers[name] = driver_class(name, config.settings)
        self.logger.info(f"Registered provider: {name} ({config.type})")

    def get_driver(self, name: str) -> Optional[DNSProvider]:
        return self._drivers.get(name)

    def list_providers(self) -> List[Dict[str, Any]]:
        """List all configured provider instances.

        Returns:
            List of provider info dictionaries
        """
        return [driver.get_provider_info() for driver in self._drivers.values()]

    def get_provider_count(self) -> int:
        """Get total number of configured providers."""
        return len(self._drivers)

    def get_provider_types(self) -> List[str]:
        """Get list of available provider types."""
        return sorted(self._types.keys())

    def build_dns_config(self, domains: List[DomainModel]) -> DNSConfig:
        """Turn domain models into the runtime desired state.

        Raises:
            ConfigurationError: If a domain references an unknown provider
        """
        return DNSConfig(domains=[self._build_domain(d) for d in domains])

    def _build_domain(self, model: DomainModel) -> DomainConfig:
        domain = DomainConfig(
            name=model.name,
            nameservers=[Nameserver(ns.rstrip(".")) for ns in model.nameservers],
            metadata=dict(model.metadata),
        )

        for provider_name, ns_count in model.providers.items():
            driver = self.get_driver(provider_name)
            if driver is None:
                raise ConfigurationError(
                    f"Domain {model.name} uses provider {provider_name}, which is not configured"
                )
            domain.provider_instances.append(
                ProviderInstance(
                    name=provider_name,
                    provider_type=driver.PROVIDER_TYPE,
                    driver=driver,
                    number_of_nameservers=ns_count,
                )
            )

        for rec in model.records:
            record = RecordConfig(type=rec.type, target=rec.target, ttl=rec.ttl)
            record.set_label(rec.name, model.name)
            domain.records.append(record)

        return domain
