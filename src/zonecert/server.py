"""STDIO server implementation for zonecert."""

import os
import sys
import signal
from typing import Optional, Annotated
from datetime import datetime

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .config.loader import load_config
from .core.logging import setup_logging
from .core.notifications import build_notifier
from .managers.certificate_manager import CertificateManager
from .managers.provider_manager import ProviderManager
from .tools.certificate_tools import CertificateTools
from .tools.acme_tools import ACMETools
from .tools.definitions import *


class ZoneCertServer:
    """Main server class for zonecert."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the server.

        Args:
            config_path: Path to configuration file
        """
        # Load configuration
        self.config = load_config(config_path)
        self.logger = setup_logging(self.config.logging)

        # Initialize managers
        self.provider_manager = ProviderManager(self.config.providers)
        self.dns_config = self.provider_manager.build_dns_config(self.config.domains)
        self.notifier = build_notifier(self.config.notifications)
        self.certificate_manager = CertificateManager(
            acme_config=self.config.acme,
            dns_config=self.dns_config,
            notifier=self.notifier,
        )

        # Initialize tools
        self.certificate_tools = CertificateTools(self.certificate_manager, self.dns_config)
        self.acme_tools = ACMETools(self.certificate_manager, self.config.certificates)

        # Initialize MCP server
        self.mcp = FastMCP("ZoneCert")
        self._setup_tools()

    def _setup_tools(self) -> None:
        """Register MCP tools with the server."""

        # === Issuance Tools (2) ===

        @self.mcp.tool(description=GET_CERTS_DESC)
        async def get_certs(
            only: Annotated[Optional[str], Field(description="Only process this certificate name")] = None,
            renew_under: Annotated[Optional[int], Field(description="Renew when fewer days remain")] = None
        ):
            return await self.acme_tools.get_certs(only, renew_under)

        @self.mcp.tool(description=ISSUE_OR_RENEW_CERTIFICATE_DESC)
        async def issue_or_renew_certificate(
            cert_name: Annotated[str, Field(description="Configured certificate name")],
            renew_under: Annotated[Optional[int], Field(description="Renew when fewer days remain")] = None
        ):
            return await self.acme_tools.issue_or_renew_certificate(cert_name, renew_under)

        # === Certificate Check Tools (3) ===

        @self.mcp.tool(description=LIST_STORED_CERTIFICATES_DESC)
        async def list_stored_certificates():
            return await self.certificate_tools.list_stored_certificates()

        @self.mcp.tool(description=GET_CERTIFICATE_INFO_DESC)
        async def get_certificate_info(
            cert_name: Annotated[str, Field(description="Certificate name")]
        ):
            return await self.certificate_tools.get_certificate_info(cert_name)

        @self.mcp.tool(description=CHECK_CERTIFICATE_EXPIRY_DESC)
        async def check_certificate_expiry(
            cert_name: Annotated[str, Field(description="Certificate name")],
            days_threshold: Annotated[Optional[int], Field(description="Days before expiry to warn")] = None
        ):
            return await self.certificate_tools.check_certificate_expiry(cert_name, days_threshold)

        # === Zone Tools (1) ===

        @self.mcp.tool(description=LIST_ZONES_DESC)
        async def list_zones():
            return await self.certificate_tools.list_zones()

        # === System Tools (2) ===

        @self.mcp.tool(description=HEALTH_CHECK_DESC)
        async def health_check():
            return self.health()

        @self.mcp.tool(description=GET_SERVER_INFO_DESC)
        async def get_server_info():
            return self.server_info()

    def health(self) -> dict:
        return {
            "status": "healthy",
            "server_name": self.config.server.name,
            "server_version": self.config.server.version,
            "configured_providers": self.provider_manager.get_provider_count(),
            "managed_zones": len(self.dns_config.domains),
            "timestamp": datetime.now().isoformat()
        }

    def server_info(self) -> dict:
        return {
            "name": self.config.server.name,
            "version": self.config.server.version,
            "acme_directory": self.config.acme.resolved_directory,
            "configured_certificates": len(self.config.certificates),
            "provider_types": self.provider_manager.get_provider_types(),
            "providers": self.provider_manager.list_providers(),
            "tool_categories": {
                "issuance": 2,
                "certificate_check": 3,
                "zones": 1,
                "system": 2
            },
            "total_tools": len(TOOL_DEFINITIONS)
        }

    def start(self) -> None:
        """Start the MCP server."""
        import anyio

        def signal_handler(signum, frame):
            self.logger.info("Received signal to shutdown...")
            self.notifier.close()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        try:
            self.logger.info(f"Starting {self.config.server.name} v{self.config.server.version}...")
            self.logger.info(f"Managing {len(self.dns_config.domains)} zones")
            anyio.run(self.mcp.run_stdio_async)
        except Exception as e:
            self.logger.error(f"Server error: {e}")
            sys.exit(1)


def main():
    """Main entry point."""
    config_path = os.environ.get("ZONECERT_CONFIG")

    try:
        server = ZoneCertServer(config_path)
        server.start()
    except KeyboardInterrupt:
        print("\nShutting down gracefully...", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
