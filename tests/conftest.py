"""Shared fixtures: in-memory DNS provider, stores, transport and certificates."""

import copy
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from zonecert.core.acme_client import ChallengeTransport
from zonecert.core.errors import NotificationError
from zonecert.core.notifications import Notifier
from zonecert.core.reconcile import Correction
from zonecert.core.records import DNSConfig, DomainConfig, Nameserver, ProviderInstance, RecordConfig
from zonecert.core.storage import Account, AccountStore, CertificateResource, CertificateStore
from zonecert.providers.base import DNSProvider


def make_cert(
    names: List[str],
    days: float = 90,
    issuer_cn: Optional[str] = None,
    key=None
) -> bytes:
    """Self-signed PEM certificate for ``names`` expiring in ``days``."""
    key = key or ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, names[0] if names else "none")])
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn or (names[0] if names else "none"))])
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=days))
    )
    if names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in names]), critical=False
        )
    cert = builder.sign(key, hashes.SHA256())
    return cert.public_bytes(serialization.Encoding.PEM)


def make_key_pem() -> bytes:
    return ec.generate_private_key(ec.SECP256R1()).private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


class FakeDriver(DNSProvider):
    """Provider holding its live records in memory.

    Corrections are computed by record identity: deletions first, then
    creations. ``fail_on`` makes every correction whose description contains
    the substring raise.
    """

    PROVIDER_TYPE = "FAKE"

    def __init__(self, name: str = "fake", settings: Optional[Dict] = None):
        super().__init__(name, settings or {})
        self.live: Dict[str, List[RecordConfig]] = {}
        self.nameservers: List[str] = []
        self.fail_on: Optional[str] = None
        self.reports: List[str] = []
        self.executed: List[str] = []
        self.lock = threading.Lock()

    def txt_values(self, zone: str) -> List[str]:
        with self.lock:
            return sorted(r.target for r in self.live.get(zone, []) if r.type == "TXT")

    def get_nameservers(self, domain: str) -> List[Nameserver]:
        return [Nameserver(n) for n in self.nameservers]

    def get_zone_records(self, domain: str) -> List[RecordConfig]:
        with self.lock:
            return copy.deepcopy(self.live.get(domain, []))

    def get_zone_records_corrections(self, domain, existing):
        desired = {r.key(): r for r in domain.records}
        current = {r.key(): r for r in existing}
        items = [Correction(text) for text in self.reports]
        count = 0

        for key, rec in current.items():
            if key not in desired:
                items.append(Correction(f"- DELETE {rec}", self._action(domain.name, "delete", rec, f"DELETE {rec}")))
                count += 1
        for key, rec in desired.items():
            if key not in current:
                items.append(Correction(f"+ CREATE {rec}", self._action(domain.name, "create", rec, f"CREATE {rec}")))
                count += 1
        return items, count

    def _action(self, zone, op, rec, text):
        rec = copy.deepcopy(rec)

        def run():
            if self.fail_on and self.fail_on in text:
                raise RuntimeError(f"provider rejected {text}")
            with self.lock:
                records = self.live.setdefault(zone, [])
                if op == "delete":
                    records[:] = [r for r in records if r.key() != rec.key()]
                else:
                    records.append(rec)
                self.executed.append(text)
        return run


class RecordingNotifier(Notifier):
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail
        self.lock = threading.Lock()

    def notify(self, domain, provider, msg, err=None, preview=False):
        with self.lock:
            self.calls.append((domain, provider, msg, err))
        if self.fail:
            raise NotificationError(domain, "notifier down", msg)


class MemoryStore(AccountStore, CertificateStore):
    def __init__(self):
        self.accounts: Dict[tuple, Account] = {}
        self.certs: Dict[str, CertificateResource] = {}
        self.fail_store = False

    def load_account(self, email, host):
        return self.accounts.get((email, host))

    def save_account(self, email, host, account):
        self.accounts[(email, host)] = account

    def get_certificate(self, name):
        return self.certs.get(name)

    def store_certificate(self, name, resource):
        from zonecert.core.errors import StoreError

        if self.fail_store:
            raise StoreError(f"disk full while storing {name}")
        self.certs[name] = resource

    def list_certificates(self):
        return sorted(self.certs)


class FakeTransport(ChallengeTransport):
    """Presents every name through the registered DNS-01 provider."""

    def __init__(self, account, config, recorder):
        super().__init__(account, config)
        self.recorder = recorder

    def register(self, email):
        self.recorder.registered.append(email)
        return Account(email=email, key_pem=make_key_pem(), registration={"uri": "https://ca.test/acct/1"})

    def _issue(self, names):
        if self.recorder.fail_with is not None:
            raise self.recorder.fail_with
        for name in names:
            key_auth = f"token-{name}.thumbprint"
            self.dns01_provider.present(name, f"token-{name}", key_auth)
        for name in names:
            self.recorder.live_during_order.append(name)
            if self.pre_check is not None:
                self.pre_check(f"_acme-challenge.{name}.", "value")
        for name in names:
            self.dns01_provider.cleanup(name, f"token-{name}", f"token-{name}.thumbprint")
        return CertificateResource(
            domain=names[0],
            certificate=make_cert(names, 90),
            private_key=make_key_pem(),
        )

    def obtain(self, names, must_staple=False):
        self.recorder.calls.append(("obtain", list(names), must_staple))
        return self._issue(names)

    def renew(self, resource, force=True, must_staple=False, preferred_chain=None):
        from zonecert.core.certificate_utils import get_cert_info

        names, _ = get_cert_info(resource.certificate)
        self.recorder.calls.append(("renew", names, force))
        return self._issue(names)


class TransportRecorder:
    """Transport factory that records what the manager asked for."""

    def __init__(self):
        self.registered = []
        self.calls = []
        self.configs = []
        self.transports = []
        self.live_during_order = []
        self.fail_with = None

    def __call__(self, account, config):
        self.configs.append(config)
        transport = FakeTransport(account, config, self)
        self.transports.append(transport)
        return transport


def make_domain(name: str, driver: FakeDriver, records=None, instance_name: Optional[str] = None) -> DomainConfig:
    domain = DomainConfig(name=name)
    domain.provider_instances.append(
        ProviderInstance(name=instance_name or driver.name, provider_type=driver.PROVIDER_TYPE, driver=driver)
    )
    for rtype, label, target in records or []:
        rec = RecordConfig(type=rtype, target=target)
        rec.set_label(label, name)
        domain.records.append(rec)
    return domain


def publish(driver: FakeDriver, domain: DomainConfig) -> None:
    """Make ``driver`` serve exactly the desired records of ``domain``."""
    driver.live[domain.name] = copy.deepcopy(domain.records)


@pytest.fixture
def driver():
    return FakeDriver("main")


@pytest.fixture
def zone(driver):
    domain = make_domain("example.com", driver, [("A", "@", "192.0.2.1"), ("A", "www", "192.0.2.2")])
    publish(driver, domain)
    return domain


@pytest.fixture
def dns_config(zone):
    return DNSConfig(domains=[zone])


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def recorder():
    return TransportRecorder()


@pytest.fixture
def acme_config(tmp_path):
    from zonecert.config.models import ACMEConfig

    return ACMEConfig(
        email="admin@example.com",
        directory="https://ca.test/directory",
        storage_dir=str(tmp_path),
    )
