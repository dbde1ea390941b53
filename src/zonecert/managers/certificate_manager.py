"""Certificate manager: decides whether certificates need issuing and drives the CA."""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from .challenge_coordinator import ChallengeCoordinator
from ..config.models import ACMEConfig, CertConfig
from ..core.acme_client import (
    ACMEClient,
    ChallengeTransport,
    HTTP01,
    KeyType,
    TLSALPN01,
    TransportConfig,
)
from ..core.certificate_utils import CertificateUtils, dns_names_equal, get_cert_info
from ..core.errors import ConfigurationError, StoreError, ZoneCertError
from ..core.logging import get_logger, quiet_acme_library
from ..core.notifications import Notifier
from ..core.reconcile import Reconciler
from ..core.records import DNSConfig
from ..core.storage import Account, AccountStore, CertificateStore, DirectoryStorage


TransportFactory = Callable[[Optional[Account], TransportConfig], ChallengeTransport]

ACTION_NONE = "none"
ACTION_OBTAIN = "obtain"
ACTION_RENEW = "renew"
ACTION_FAILED = "failed"


@dataclass
class IssuanceResult:
    """Outcome of one issue-or-renew decision.

    ``changed`` with a non-None ``error`` means the certificate was issued but
    a later step (persisting it or cleaning up DNS) failed.
    """

    cert_name: str
    changed: bool
    action: str
    error: Optional[ZoneCertError] = None
    days_remaining: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cert_name": self.cert_name,
            "changed": self.changed,
            "action": self.action,
            "error": str(self.error) if self.error else None,
            "days_remaining": round(self.days_remaining, 2) if self.days_remaining is not None else None,
        }


def validate_certificate_list(certificates: List[CertConfig], dns_config: DNSConfig) -> None:
    """Check every requested name is covered by a managed zone.

    Raises:
        ConfigurationError: If the list is empty, a name is duplicated or uncovered
    """
    if not certificates:
        raise ConfigurationError("Must provide at least one certificate to issue in cert configuration")

    seen = set()
    for cert in certificates:
        if cert.cert_name in seen:
            raise ConfigurationError(f"certificate {cert.cert_name} is defined more than once")
        seen.add(cert.cert_name)
        for name in cert.names:
            dns_config.domain_containing_fqdn(name)


class CertificateManager:
    """Issues and renews certificates for zones under declarative management."""

    def __init__(
        self,
        acme_config: ACMEConfig,
        dns_config: DNSConfig,
        account_store: Optional[AccountStore] = None,
        certificate_store: Optional[CertificateStore] = None,
        reconciler: Optional[Reconciler] = None,
        notifier: Optional[Notifier] = None,
        transport_factory: TransportFactory = ACMEClient
    ):
        """Initialize certificate manager.

        Loads the ACME account, registering a new one if none is stored.

        Args:
            acme_config: ACME configuration
            dns_config: Desired state of every managed zone
            account_store: Account storage (defaults to directory storage)
            certificate_store: Certificate storage (defaults to directory storage)
            reconciler: Reconciliation engine used by the challenge coordinator
            notifier: Receives every correction the coordinator runs
            transport_factory: Builds the ACME transport for one request

        Raises:
            ConfigurationError: If the directory URL or email is invalid
        """
        self.acme_config = acme_config
        self.dns_config = dns_config
        self.logger = get_logger("certificate_manager")
        self.cert_utils = CertificateUtils()

        self.directory = acme_config.resolved_directory
        if not urlparse(self.directory).scheme or not acme_config.directory_host:
            raise ConfigurationError(f"ACME directory '{self.directory}' is not a valid URL")
        self.acme_host = acme_config.directory_host

        if not acme_config.email:
            raise ConfigurationError("ACME email is required. Set via config or ACME_EMAIL env var.")
        self.email = acme_config.email

        storage = None
        if account_store is None or certificate_store is None:
            storage = DirectoryStorage(acme_config.storage_dir)
        self.account_store = account_store or storage
        self.certificate_store = certificate_store or storage

        self.transport_factory = transport_factory
        self.coordinator = ChallengeCoordinator(
            dns_config,
            reconciler=reconciler,
            notifier=notifier,
            ignored_providers=acme_config.skip_providers,
            propagation_seconds=acme_config.propagation_seconds,
            verify_propagation=acme_config.verify_propagation,
            resolvers=acme_config.resolvers,
        )
        # Coordinator state belongs to one flow at a time
        self._issue_lock = threading.Lock()

        quiet_acme_library(acme_config.verbose)
        self.account = self._get_or_create_account()

    def _transport_config(self, key_type: KeyType = KeyType.RSA2048) -> TransportConfig:
        return TransportConfig(
            directory_url=self.directory,
            key_type=key_type,
            propagation_timeout=self.acme_config.propagation_timeout,
            propagation_interval=self.acme_config.propagation_interval,
        )

    def _get_or_create_account(self) -> Account:
        account = self.account_store.load_account(self.email, self.acme_host)
        if account is not None:
            self.logger.debug(f"Loaded ACME account {account.uri} for {self.email} at {self.acme_host}")
            return account

        self.logger.info(f"Creating new ACME account for {self.email} at {self.acme_host}")
        transport = self.transport_factory(None, self._transport_config())
        account = transport.register(self.email)
        self.logger.info(f"Registered ACME account {account.uri}")
        self.account_store.save_account(self.email, self.acme_host, account)
        return account

    def _make_transport(self, request: CertConfig) -> ChallengeTransport:
        key_type = KeyType.EC256 if request.use_ecc else KeyType.RSA2048
        transport = self.transport_factory(self.account, self._transport_config(key_type))
        transport.remove_challenge(HTTP01)
        transport.remove_challenge(TLSALPN01)
        transport.set_dns01_provider(self.coordinator, self.coordinator.pre_check)
        return transport

    def issue_or_renew(self, request: CertConfig, renew_under: Optional[int] = None) -> IssuanceResult:
        """Obtain ``request`` if it does not exist, renew it when close to expiry.

        Args:
            request: Certificate to check
            renew_under: Renew when fewer days remain (defaults to configuration)

        Returns:
            IssuanceResult; ``changed`` is True if a certificate was issued

        Raises:
            ZoneCertError: If nothing was issued because a step failed
        """
        if renew_under is None:
            renew_under = self.acme_config.renew_under_days

        with self._issue_lock:
            result: Optional[IssuanceResult] = None
            try:
                result = self._issue_or_renew(request, renew_under)
            finally:
                cleanup_error = self.coordinator.final_cleanup()
                if cleanup_error is not None:
                    self.logger.error(f"Cleanup after {request.cert_name} failed: {cleanup_error}")
                    if result is not None and result.error is None:
                        result.error = cleanup_error
            return result

    def _issue_or_renew(self, request: CertConfig, renew_under: int) -> IssuanceResult:
        name = request.cert_name
        self.logger.info(f"Checking certificate [{name}]")

        existing = self.certificate_store.get_certificate(name)
        action = ACTION_OBTAIN
        days_left: Optional[float] = None

        if existing is None:
            self.logger.info("No existing cert found. Issuing new...")
        else:
            names, days_left = get_cert_info(existing.certificate)
            self.logger.info(f"Found existing cert. {days_left:0.2f} days remaining.")
            names_ok = dns_names_equal(request.names, names)
            if days_left >= renew_under and names_ok:
                self.logger.info("Nothing to do")
                return IssuanceResult(name, False, ACTION_NONE, days_remaining=days_left)
            if not names_ok:
                self.logger.info("DNS Names don't match expected set. Reissuing.")
            else:
                self.logger.info("Renewing cert")
                action = ACTION_RENEW

        transport = self._make_transport(request)
        if action == ACTION_RENEW:
            resource = transport.renew(existing, True, request.must_staple, None)
        else:
            resource = transport.obtain(list(request.names), request.must_staple)
        self.logger.info(f"Obtained certificate for {name}")

        try:
            self.certificate_store.store_certificate(name, resource)
        except StoreError as e:
            self.logger.error(f"Certificate {name} was issued but could not be stored: {e}")
            return IssuanceResult(name, True, action, error=e)

        return IssuanceResult(name, True, action)

    def get_certs(
        self,
        certificates: List[CertConfig],
        renew_under: Optional[int] = None,
        only: Optional[str] = None
    ) -> List[IssuanceResult]:
        """Issue or renew a list of certificates.

        A failure on one certificate is recorded and the rest still run.

        Args:
            certificates: Certificates to process
            renew_under: Renewal threshold in days
            only: Process only the certificate with this name

        Returns:
            One IssuanceResult per processed certificate
        """
        validate_certificate_list(certificates, self.dns_config)

        results = []
        for cert in certificates:
            if only and cert.cert_name != only:
                continue
            try:
                result = self.issue_or_renew(cert, renew_under)
            except ZoneCertError as e:
                self.logger.error(f"Certificate {cert.cert_name} failed: {e}")
                result = IssuanceResult(cert.cert_name, False, ACTION_FAILED, error=e)
            results.append(result)

        if only and not results:
            raise ConfigurationError(f"No certificate named {only} in cert configuration")
        return results

    def list_certificates(self) -> List[str]:
        return self.certificate_store.list_certificates()

    def get_certificate_info(self, cert_name: str) -> Optional[Dict[str, Any]]:
        """Parse the stored certificate ``cert_name``; None if it does not exist."""
        existing = self.certificate_store.get_certificate(cert_name)
        if existing is None:
            return None
        return self.cert_utils.parse_certificate(existing.certificate, cert_name).to_dict()

    def check_expiry(self, cert_name: str, days_threshold: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Expiry status of a stored certificate; None if it does not exist."""
        if days_threshold is None:
            days_threshold = self.acme_config.renew_under_days
        existing = self.certificate_store.get_certificate(cert_name)
        if existing is None:
            return None
        status = self.cert_utils.check_expiry(existing.certificate, days_threshold)
        status["cert_name"] = cert_name
        return status
