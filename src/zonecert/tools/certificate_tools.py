"""Certificate and zone inspection tools for MCP."""

from typing import Optional, Dict, Any

from .base import BaseTool
from ..core.errors import ZoneCertError
from ..core.records import DNSConfig
from ..managers.certificate_manager import CertificateManager


class CertificateTools(BaseTool):
    """Tools for inspecting stored certificates and managed zones."""

    def __init__(
        self,
        certificate_manager: CertificateManager,
        dns_config: DNSConfig
    ):
        """Initialize certificate tools.

        Args:
            certificate_manager: CertificateManager instance
            dns_config: Zones under management
        """
        super().__init__("certificate", certificate_manager)
        self.dns_config = dns_config

    async def list_stored_certificates(self) -> Dict[str, Any]:
        """List certificates in the store."""
        try:
            names = self.certificate_manager.list_certificates()
        except ZoneCertError as e:
            return self._format_error(e, {"certificates": []})

        certificates = []
        for name in names:
            try:
                certificates.append(self.certificate_manager.get_certificate_info(name))
            except ZoneCertError as e:
                self.logger.warning(f"Could not read certificate {name}: {e}")
                certificates.append({"name": name, "status": "unreadable", "error": str(e)})

        return {
            "success": True,
            "certificates": certificates,
            "count": len(certificates)
        }

    async def get_certificate_info(self, cert_name: str) -> Dict[str, Any]:
        """Get stored certificate details."""
        try:
            info = self.certificate_manager.get_certificate_info(cert_name)
        except ZoneCertError as e:
            return self._format_error(e)
        if info is None:
            return self._format_error(f"Certificate {cert_name} not found")
        return {
            "success": True,
            "certificate": info
        }

    async def check_certificate_expiry(
        self,
        cert_name: str,
        days_threshold: Optional[int] = None
    ) -> Dict[str, Any]:
        """Check stored certificate expiry status."""
        try:
            status = self.certificate_manager.check_expiry(cert_name, days_threshold)
        except ZoneCertError as e:
            return self._format_error(e)
        if status is None:
            return self._format_error(f"Certificate {cert_name} not found")
        return {
            "success": True,
            **status
        }

    async def list_zones(self) -> Dict[str, Any]:
        """List zones under management."""
        zones = [
            {
                "name": domain.name,
                "providers": [p.name for p in domain.provider_instances],
                "records": len(domain.records),
                "nameservers": [ns.name for ns in domain.nameservers],
            }
            for domain in self.dns_config.domains
        ]
        return {
            "success": True,
            "zones": zones,
            "count": len(zones)
        }
