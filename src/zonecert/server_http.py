"""HTTP server implementation for zonecert."""

import os
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from .config.loader import load_config
from .config.models import Config
from .core.logging import setup_logging
from .core.notifications import Notifier, build_notifier
from .managers.certificate_manager import CertificateManager
from .managers.provider_manager import ProviderManager
from .tools.certificate_tools import CertificateTools
from .tools.acme_tools import ACMETools
from .tools.definitions import TOOL_DEFINITIONS


# Request/Response models
class GetCertsRequest(BaseModel):
    only: Optional[str] = None
    renew_under: Optional[int] = None


class IssueRequest(BaseModel):
    renew_under: Optional[int] = None


# Global state
config: Optional[Config] = None
provider_manager: Optional[ProviderManager] = None
notifier: Optional[Notifier] = None
certificate_tools: Optional[CertificateTools] = None
acme_tools: Optional[ACMETools] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global config, provider_manager, notifier, certificate_tools, acme_tools

    # Startup
    config_path = os.environ.get("ZONECERT_CONFIG")
    config = load_config(config_path)
    logger = setup_logging(config.logging)

    provider_manager = ProviderManager(config.providers)
    dns_config = provider_manager.build_dns_config(config.domains)
    notifier = build_notifier(config.notifications)
    certificate_manager = CertificateManager(
        acme_config=config.acme,
        dns_config=dns_config,
        notifier=notifier,
    )

    certificate_tools = CertificateTools(certificate_manager, dns_config)
    acme_tools = ACMETools(certificate_manager, config.certificates)

    logger.info(f"Starting {config.server.name} HTTP server v{config.server.version}")
    logger.info(f"Managing {len(dns_config.domains)} zones")

    yield

    # Shutdown
    notifier.close()
    logger.info("Shutting down HTTP server")


# Create FastAPI app
app = FastAPI(
    title="zonecert",
    description="ACME certificate issuance for declaratively managed DNS zones",
    version="1.0.0",
    lifespan=lifespan
)


def _raise_not_found(result: dict) -> dict:
    if not result.get("success") and "not found" in result.get("error", ""):
        raise HTTPException(status_code=404, detail=result["error"])
    return result


# === Health and Info ===

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "server_name": config.server.name,
        "server_version": config.server.version,
        "configured_providers": provider_manager.get_provider_count(),
    }


@app.get("/info")
async def get_server_info():
    """Get server information."""
    return {
        "name": config.server.name,
        "version": config.server.version,
        "acme_directory": config.acme.resolved_directory,
        "configured_certificates": len(config.certificates),
        "provider_types": provider_manager.get_provider_types(),
        "providers": provider_manager.list_providers(),
        "total_tools": len(TOOL_DEFINITIONS),
    }


# === Zones ===

@app.get("/zones")
async def list_zones():
    """List zones under management."""
    return await certificate_tools.list_zones()


# === Certificates ===

@app.get("/certificates")
async def list_stored_certificates():
    """List stored certificates."""
    return await certificate_tools.list_stored_certificates()


@app.get("/certificates/{cert_name}")
async def get_certificate_info(cert_name: str):
    """Get stored certificate details."""
    return _raise_not_found(await certificate_tools.get_certificate_info(cert_name))


@app.get("/certificates/{cert_name}/expiry")
async def check_certificate_expiry(cert_name: str, days_threshold: Optional[int] = None):
    """Check stored certificate expiry."""
    return _raise_not_found(
        await certificate_tools.check_certificate_expiry(cert_name, days_threshold)
    )


@app.post("/certificates/{cert_name}/issue")
async def issue_or_renew_certificate(cert_name: str, request: Optional[IssueRequest] = None):
    """Issue or renew one configured certificate."""
    renew_under = request.renew_under if request else None
    return await acme_tools.issue_or_renew_certificate(cert_name, renew_under)


@app.post("/get-certs")
async def get_certs(request: Optional[GetCertsRequest] = None):
    """Issue or renew all configured certificates."""
    request = request or GetCertsRequest()
    return await acme_tools.get_certs(request.only, request.renew_under)


def main():
    """Main entry point for HTTP server."""
    config_path = os.environ.get("ZONECERT_CONFIG")
    cfg = load_config(config_path)

    uvicorn.run(
        "zonecert.server_http:app",
        host=cfg.server.host,
        port=cfg.server.port,
        reload=False
    )


if __name__ == "__main__":
    main()
