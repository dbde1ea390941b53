"""Tests for the provider manager."""

import pytest

from conftest import FakeDriver


class TestProviderManager:
    """Tests for ProviderManager."""

    def test_initialization_empty(self):
        """Test ProviderManager initialization without config."""
        from zonecert.managers.provider_manager import ProviderManager

        manager = ProviderManager()
        assert manager.get_provider_count() == 0
        assert manager.list_providers() == []
        assert "NONE" in manager.get_provider_types()

    def test_initialization_with_config(self):
        """Test ProviderManager initialization with config."""
        from zonecert.config.models import ProviderConfig
        from zonecert.managers.provider_manager import ProviderManager

        manager = ProviderManager({"none": ProviderConfig(type="none")})

        assert manager.get_provider_count() == 1
        assert manager.list_providers() == [{"name": "none", "provider_type": "NONE"}]
        assert manager.get_driver("none").name == "none"
        assert manager.get_driver("missing") is None

    def test_unknown_type(self):
        """Test an unknown provider type is a configuration error."""
        from zonecert.config.models import ProviderConfig
        from zonecert.core.errors import ConfigurationError
        from zonecert.managers.provider_manager import ProviderManager

        with pytest.raises(ConfigurationError, match="Unknown provider type"):
            ProviderManager({"x": ProviderConfig(type="NOPE")})

    def test_register_provider_type(self, monkeypatch):
        """Test additional driver types can be registered."""
        from zonecert.config.models import ProviderConfig
        from zonecert.managers.provider_manager import ProviderManager

        monkeypatch.setattr(ProviderManager, "PROVIDER_TYPES", dict(ProviderManager.PROVIDER_TYPES))
        ProviderManager.register_provider_type("fake", FakeDriver)

        manager = ProviderManager({"main": ProviderConfig(type="FAKE", settings={"token": "t"})})
        driver = manager.get_driver("main")

        assert isinstance(driver, FakeDriver)
        assert driver.settings == {"token": "t"}
        assert "FAKE" in manager.get_provider_types()

    def test_build_dns_config(self):
        """Test domain models become runtime zones."""
        from zonecert.config.models import DomainModel, ProviderConfig
        from zonecert.managers.provider_manager import ProviderManager

        manager = ProviderManager({"none": ProviderConfig(type="NONE")})
        dns_config = manager.build_dns_config([
            DomainModel(
                name="example.com",
                providers={"none": 2},
                nameservers=["ns1.example.net."],
                records=[
                    {"type": "A", "name": "@", "target": "192.0.2.1"},
                    {"type": "CNAME", "name": "www", "target": "example.com.", "ttl": 60},
                ],
            )
        ])

        domain = dns_config.domains[0]
        assert domain.name == "example.com"
        assert domain.provider_instances[0].name == "none"
        assert domain.provider_instances[0].number_of_nameservers == 2
        assert domain.provider_instances[0].driver is manager.get_driver("none")
        assert [ns.name for ns in domain.nameservers] == ["ns1.example.net"]
        assert [r.name_fqdn for r in domain.records] == ["example.com", "www.example.com"]
        assert domain.records[1].ttl == 60

    def test_build_dns_config_unknown_provider(self):
        """Test a domain may only reference configured providers."""
        from zonecert.config.models import DomainModel
        from zonecert.core.errors import ConfigurationError
        from zonecert.managers.provider_manager import ProviderManager

        with pytest.raises(ConfigurationError, match="not configured"):
            ProviderManager().build_dns_config([DomainModel(name="example.com", providers={"x": -1})])
