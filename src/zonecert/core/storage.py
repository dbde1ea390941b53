"""Persistence of ACME accounts and issued certificates."""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import StoreError
from .logging import get_logger


FILE_PERMS = 0o600
DIR_PERMS = 0o700


@dataclass
class Account:
    """An ACME account bound to one directory host."""

    email: str
    key_pem: bytes
    registration: Dict[str, Any] = field(default_factory=dict)

    @property
    def uri(self) -> Optional[str]:
        return self.registration.get("uri")


@dataclass
class CertificateResource:
    """An issued certificate bundle as returned by the certificate authority."""

    domain: str
    certificate: bytes
    private_key: bytes = b""
    issuer_certificate: bytes = b""
    csr: bytes = b""
    cert_url: str = ""
    cert_stable_url: str = ""

    def metadata(self) -> Dict[str, str]:
        return {
            "domain": self.domain,
            "cert_url": self.cert_url,
            "cert_stable_url": self.cert_stable_url,
        }


class AccountStore(ABC):
    """Stores ACME account credentials keyed by email and directory host."""

    @abstractmethod
    def load_account(self, email: str, host: str) -> Optional[Account]:
        """Return the stored account or None if there is none."""

    @abstractmethod
    def save_account(self, email: str, host: str, account: Account) -> None:
        """Persist ``account``."""


class CertificateStore(ABC):
    """Stores issued certificates keyed by logical certificate name."""

    @abstractmethod
    def get_certificate(self, name: str) -> Optional[CertificateResource]:
        """Return the stored certificate or None if there is none."""

    @abstractmethod
    def store_certificate(self, name: str, resource: CertificateResource) -> None:
        """Persist ``resource`` under ``name``."""

    @abstractmethod
    def list_certificates(self) -> List[str]:
        """Names of all stored certificates."""


class DirectoryStorage(AccountStore, CertificateStore):
    """Account and certificate storage in a local directory tree.

    Layout::

        <root>/.letsencrypt/<host>/<email>/account.json
        <root>/.letsencrypt/<host>/<email>/account.key
        <root>/certificates/<name>/<name>.json
        <root>/certificates/<name>/<name>.crt
        <root>/certificates/<name>/<name>.key
    """

    def __init__(self, root: str):
        self.root = Path(root).expanduser()
        self.logger = get_logger("storage")

    def _account_dir(self, email: str, host: str) -> Path:
        return self.root / ".letsencrypt" / host / email

    def _cert_dir(self, name: str) -> Path:
        return self.root / "certificates" / name

    def _cert_file(self, name: str, ext: str) -> Path:
        return self._cert_dir(name) / f"{name}.{ext}"

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(mode=DIR_PERMS, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_PERMS)
        with os.fdopen(fd, "wb") as f:
            f.write(data)

    def _read_optional(self, path: Path) -> bytes:
        if not path.exists():
            return b""
        return path.read_bytes()

    def load_account(self, email: str, host: str) -> Optional[Account]:
        account_dir = self._account_dir(email, host)
        account_file = account_dir / "account.json"
        if not account_file.exists():
            return None
        try:
            data = json.loads(account_file.read_text())
            key_pem = (account_dir / "account.key").read_bytes()
        except (OSError, ValueError) as e:
            raise StoreError(f"Error loading account for {email} at {host}: {e}") from e
        if b"PRIVATE KEY" not in key_pem:
            raise StoreError(f"Error decoding account private key for {email} at {host}")
        return Account(
            email=data.get("email", email),
            key_pem=key_pem,
            registration=data.get("registration") or {},
        )

    def save_account(self, email: str, host: str, account: Account) -> None:
        account_dir = self._account_dir(email, host)
        try:
            self._write(
                account_dir / "account.json",
                json.dumps({"email": account.email, "registration": account.registration}, indent=2).encode()
            )
            self._write(account_dir / "account.key", account.key_pem)
        except OSError as e:
            raise StoreError(f"Error saving account for {email} at {host}: {e}") from e
        self.logger.info(f"Saved ACME account for {email} at {host}")

    def get_certificate(self, name: str) -> Optional[CertificateResource]:
        meta_file = self._cert_file(name, "json")
        # No metadata means nothing else is trusted either
        if not meta_file.exists():
            return None
        try:
            meta = json.loads(meta_file.read_text())
            return CertificateResource(
                domain=meta.get("domain", ""),
                cert_url=meta.get("cert_url", ""),
                cert_stable_url=meta.get("cert_stable_url", ""),
                certificate=self._cert_file(name, "crt").read_bytes(),
                private_key=self._cert_file(name, "key").read_bytes(),
                issuer_certificate=self._read_optional(self._cert_file(name, "issuer.crt")),
                csr=self._read_optional(self._cert_file(name, "csr")),
            )
        except (OSError, ValueError) as e:
            raise StoreError(f"Error loading certificate {name}: {e}") from e

    def store_certificate(self, name: str, resource: CertificateResource) -> None:
        try:
            self._write(self._cert_file(name, "json"), json.dumps(resource.metadata(), indent=2).encode())
            self._write(self._cert_file(name, "crt"), resource.certificate)
            self._write(self._cert_file(name, "key"), resource.private_key)
            if resource.issuer_certificate:
                self._write(self._cert_file(name, "issuer.crt"), resource.issuer_certificate)
            if resource.csr:
                self._write(self._cert_file(name, "csr"), resource.csr)
        except OSError as e:
            raise StoreError(f"Error storing certificate {name}: {e}") from e
        self.logger.info(f"Stored certificate {name}")

    def list_certificates(self) -> List[str]:
        cert_root = self.root / "certificates"
        if not cert_root.is_dir():
            return []
        return sorted(
            entry.name for entry in cert_root.iterdir()
            if (entry / f"{entry.name}.json").exists()
        )
