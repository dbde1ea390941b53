"""ACME issuance tools for MCP."""

from typing import Optional, Dict, Any, List

from .base import BaseTool
from ..config.models import CertConfig
from ..core.errors import ZoneCertError
from ..managers.certificate_manager import CertificateManager


class ACMETools(BaseTool):
    """Tools for issuing and renewing certificates."""

    def __init__(
        self,
        certificate_manager: CertificateManager,
        certificates: List[CertConfig]
    ):
        """Initialize ACME tools.

        Args:
            certificate_manager: CertificateManager instance
            certificates: Configured certificates
        """
        super().__init__("acme", certificate_manager)
        self.certificates = list(certificates)

    def _find(self, cert_name: str) -> Optional[CertConfig]:
        for cert in self.certificates:
            if cert.cert_name == cert_name:
                return cert
        return None

    async def get_certs(
        self,
        only: Optional[str] = None,
        renew_under: Optional[int] = None
    ) -> Dict[str, Any]:
        """Issue or renew all configured certificates."""
        try:
            results = await self._run_blocking(
                self.certificate_manager.get_certs, self.certificates, renew_under, only
            )
        except ZoneCertError as e:
            self.logger.error(f"get_certs failed: {e}")
            return self._format_error(e)

        failed = [r for r in results if r.error is not None]
        data = {
            "results": [r.to_dict() for r in results],
            "changed": sum(1 for r in results if r.changed),
            "failed": len(failed),
        }
        if failed:
            return self._format_error(f"{len(failed)} of {len(results)} certificates had errors", data)
        return self._format_success(f"Processed {len(results)} certificates", data)

    async def issue_or_renew_certificate(
        self,
        cert_name: str,
        renew_under: Optional[int] = None
    ) -> Dict[str, Any]:
        """Issue or renew one configured certificate."""
        cert = self._find(cert_name)
        if cert is None:
            return self._format_error(f"Certificate {cert_name} is not configured")

        try:
            result = await self._run_blocking(self.certificate_manager.issue_or_renew, cert, renew_under)
        except ZoneCertError as e:
            self.logger.error(f"Issuing {cert_name} failed: {e}")
            return self._format_error(e, {"cert_name": cert_name})

        if result.error is not None:
            return self._format_error(result.error, result.to_dict())
        return self._format_success(
            f"Certificate {cert_name}: {result.action}", result.to_dict()
        )
