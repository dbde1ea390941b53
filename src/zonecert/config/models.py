"""Pydantic configuration models for zonecert."""

import re
from typing import Optional, Dict, List, Literal
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pathlib import Path


LETS_ENCRYPT_LIVE = "https://acme-v02.api.letsencrypt.org/directory"
LETS_ENCRYPT_STAGING = "https://acme-staging-v02.api.letsencrypt.org/directory"

DIRECTORY_ALIASES = {
    "live": LETS_ENCRYPT_LIVE,
    "staging": LETS_ENCRYPT_STAGING,
}

_CERT_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8815, description="Server port")
    name: str = Field(default="zonecert", description="Server name")
    version: str = Field(default="1.0.0", description="Server version")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    console: bool = Field(default=True, description="Enable console logging")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format"
    )


class ACMEConfig(BaseModel):
    """ACME/Let's Encrypt configuration."""

    email: Optional[str] = Field(default=None, description="Contact email for the ACME account")
    directory: str = Field(
        default="live",
        description="ACME directory: 'live', 'staging' or a directory URL"
    )
    storage_dir: str = Field(
        default=".", description="Root directory for accounts and certificates"
    )
    renew_under_days: int = Field(
        default=15, ge=0, description="Renew when fewer days than this remain"
    )
    skip_providers: List[str] = Field(
        default_factory=list,
        description="Provider instances excluded from challenge record reconciliation"
    )
    propagation_seconds: int = Field(
        default=0, ge=0, description="Seconds to wait once before the first readiness check"
    )
    propagation_timeout: int = Field(
        default=60, ge=0, description="Maximum seconds to poll for record readiness"
    )
    propagation_interval: int = Field(
        default=2, ge=1, description="Seconds between readiness polls"
    )
    verify_propagation: bool = Field(
        default=False, description="Query DNS for the TXT record before answering"
    )
    resolvers: List[str] = Field(
        default_factory=list, description="Resolver addresses used for propagation checks"
    )
    verbose: bool = Field(default=False, description="Log ACME library output")

    @field_validator("storage_dir")
    @classmethod
    def expand_path(cls, v: str) -> str:
        return str(Path(v).expanduser())

    @property
    def resolved_directory(self) -> str:
        """Directory URL with 'live'/'staging' aliases expanded."""
        return DIRECTORY_ALIASES.get(self.directory.lower(), self.directory)

    @property
    def directory_host(self) -> str:
        return urlparse(self.resolved_directory).netloc


class ProviderConfig(BaseModel):
    """DNS provider instance configuration."""

    type: str = Field(..., description="Provider type name, e.g. NONE")
    settings: Dict[str, str] = Field(
        default_factory=dict, description="Provider specific settings"
    )


class RecordModel(BaseModel):
    """A desired DNS record."""

    type: str = Field(..., description="Record type")
    name: str = Field(default="@", description="Label relative to the zone")
    target: str = Field(..., description="Record target/value")
    ttl: int = Field(default=300, ge=0, description="Record TTL")

    @field_validator("type")
    @classmethod
    def upper_type(cls, v: str) -> str:
        return v.upper()


class DomainModel(BaseModel):
    """Desired state of one DNS zone."""

    name: str = Field(..., description="Zone name")
    providers: Dict[str, int] = Field(
        default_factory=dict,
        description="Provider instance name -> nameservers to use (-1 for all)"
    )
    nameservers: List[str] = Field(
        default_factory=list, description="Explicit nameservers"
    )
    records: List[RecordModel] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.lower().rstrip(".")


class CertConfig(BaseModel):
    """A certificate to issue or renew."""

    model_config = ConfigDict(frozen=True)

    cert_name: str = Field(..., description="Logical certificate name")
    names: List[str] = Field(..., description="DNS names on the certificate")
    use_ecc: bool = Field(default=False, description="Use an EC P-256 key")
    must_staple: bool = Field(default=False, description="Request OCSP must-staple")

    @field_validator("cert_name")
    @classmethod
    def check_cert_name(cls, v: str) -> str:
        if not _CERT_NAME_RE.match(v):
            raise ValueError(f"certificate name '{v}' may only contain letters, digits, '.', '_' and '-'")
        return v

    @field_validator("names")
    @classmethod
    def check_names(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("certificate has no names")
        if len(v) > 100:
            raise ValueError("certificate has too many SANs. Max of 100")
        return [n.lower().rstrip(".") for n in v]


class NotificationsConfig(BaseModel):
    """Notification targets for correction results."""

    webhook_url: Optional[str] = Field(default=None, description="Generic JSON webhook")
    slack_url: Optional[str] = Field(default=None, description="Slack incoming webhook")
    timeout: float = Field(default=10.0, description="Request timeout in seconds")


class Config(BaseModel):
    """Main configuration model."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    acme: ACMEConfig = Field(default_factory=ACMEConfig)
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    domains: List[DomainModel] = Field(default_factory=list)
    certificates: List[CertConfig] = Field(default_factory=list)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
