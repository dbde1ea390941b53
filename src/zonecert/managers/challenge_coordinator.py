"""DNS-01 challenge coordinator for declaratively managed zones.

Validation records are never pushed to a provider directly. Instead the
coordinator keeps a working copy of each touched zone's desired state, adds
the TXT record to that copy and lets the reconciliation engine publish the
difference. Once the certificate flow is over, ``final_cleanup`` reconciles
every touched zone back to its pre-challenge configuration, which removes all
validation records in one pass per zone.

Per zone the lifecycle is Unseen -> Prepared -> Published -> Cleaned.
"""

import threading
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import dns.exception
import dns.resolver

from ..core.acme_client import DNS01Provider
from ..core.dns01 import get_record
from ..core.errors import NotificationError, PendingDriftError, ReconciliationError, ZoneCertError
from ..core.logging import get_logger
from ..core.nameservers import add_ns_records, determine_nameservers
from ..core.notifications import Notifier, NullNotifier
from ..core.reconcile import Correction, Reconciler, ZoneRecordsReconciler
from ..core.records import DNSConfig, DomainConfig, RecordConfig


class ChallengeCoordinator(DNS01Provider):
    """Publishes DNS-01 records through the reconciliation engine."""

    def __init__(
        self,
        dns_config: DNSConfig,
        reconciler: Optional[Reconciler] = None,
        notifier: Optional[Notifier] = None,
        ignored_providers: Iterable[str] = (),
        propagation_seconds: int = 0,
        verify_propagation: bool = False,
        resolvers: Sequence[str] = (),
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the coordinator.

        Args:
            dns_config: Desired state of every managed zone; never mutated
            reconciler: Engine computing corrections per provider driver
            notifier: Receives every correction and its outcome
            ignored_providers: Provider instance names excluded from reconciliation
            propagation_seconds: Delay before the first readiness check of a flow
            verify_propagation: Only report ready once the TXT value resolves
            resolvers: Resolver addresses used when verifying propagation
            sleep: Sleep function, replaceable in tests
        """
        self.dns_config = dns_config
        self.reconciler = reconciler or ZoneRecordsReconciler()
        self.notifier = notifier or NullNotifier()
        self.ignored_providers = frozenset(ignored_providers)
        self.propagation_seconds = propagation_seconds
        self.verify_propagation = verify_propagation
        self.resolvers = list(resolvers)
        self._sleep = sleep
        self.logger = get_logger("challenge_coordinator")

        self._lock = threading.Lock()
        self._zone_locks: Dict[str, threading.Lock] = {}
        self._domains: Dict[str, DomainConfig] = {}
        self._original_domains: List[DomainConfig] = []
        self._waited_once = False

    @property
    def working_copies(self) -> Dict[str, DomainConfig]:
        with self._lock:
            return dict(self._domains)

    @property
    def original_domains(self) -> List[DomainConfig]:
        with self._lock:
            return list(self._original_domains)

    def _zone_lock(self, zone: str) -> threading.Lock:
        with self._lock:
            lock = self._zone_locks.get(zone)
            if lock is None:
                lock = self._zone_locks[zone] = threading.Lock()
            return lock

    def present(self, domain: str, token: str, key_auth: str) -> None:
        """Publish the validation record for ``domain``.

        Raises:
            PendingDriftError: The zone had unapplied corrections before any change
            ReconciliationError: A correction failed; later ones were not run
        """
        zone = self.dns_config.domain_containing_fqdn(domain)

        with self._zone_lock(zone.name):
            with self._lock:
                working = self._domains.get(zone.name)
            if working is None:
                working = self._prepare(zone)

            fqdn, value = get_record(domain, key_auth)
            txt = RecordConfig(type="TXT")
            txt.set_target_txt(value)
            txt.set_label_from_fqdn(fqdn, working.name)
            working.records.append(txt)
            self.logger.info(f"Publishing {txt.name_fqdn} TXT for {domain}")

            self._run_corrections(working)

    def cleanup(self, domain: str, token: str, key_auth: str) -> None:
        # Records are removed together per zone by final_cleanup.
        return None

    def _prepare(self, zone: DomainConfig) -> DomainConfig:
        """One-time work for a zone: NS records, drift check, working copy."""
        snapshot = zone.clone()
        try:
            snapshot.nameservers = determine_nameservers(snapshot)
        except ZoneCertError:
            raise
        except Exception as e:
            raise ReconciliationError(snapshot.name, f"[nameservers] {e}") from e
        add_ns_records(snapshot)

        # Make sure the live zone matches the desired state before we touch it.
        pending = self._get_corrections(snapshot)
        if pending:
            for _, correction in pending:
                self.logger.warning(correction.description)
            raise PendingDriftError(snapshot.name, [c.description for _, c in pending])

        working = snapshot.clone()
        with self._lock:
            self._original_domains.append(snapshot)
            self._domains[snapshot.name] = working
        self.logger.debug(f"Prepared working copy for {snapshot.name}")
        return working

    def _get_corrections(self, domain: DomainConfig) -> List[Tuple[str, Correction]]:
        corrections: List[Tuple[str, Correction]] = []
        for instance in domain.provider_instances:
            if instance.name in self.ignored_providers:
                continue
            try:
                result = self.reconciler.reconcile(instance.driver, domain.clone())
            except ZoneCertError:
                raise
            except Exception as e:
                raise ReconciliationError(domain.name, f"[{instance.name}] {e}") from e

            for report in result.reports:
                self.logger.info(f"INFO[{instance.name}] {report.description.strip()}")
            for correction in result.corrections:
                corrections.append((
                    instance.name,
                    Correction(f"[{instance.name}] {correction.description.strip()}", correction.action),
                ))
        return corrections

    def _run_corrections(self, domain: DomainConfig) -> None:
        corrections = self._get_corrections(domain)
        self.logger.info(f"{len(corrections)} corrections for {domain.name}")

        for provider, correction in corrections:
            self.logger.info(f"Running [{correction.description}]")
            err: Optional[Exception] = None
            try:
                correction.run()
            except Exception as e:
                err = e

            notify_err: Optional[NotificationError] = None
            try:
                self.notifier.notify(domain.name, provider, correction.description, err, False)
            except NotificationError as e:
                notify_err = e

            if err is not None:
                raise ReconciliationError(domain.name, str(err), correction.description) from err
            if notify_err is not None:
                raise notify_err

    def pre_check(self, fqdn: str, value: str) -> bool:
        """Report whether the authority may check ``fqdn`` now.

        Waits ``propagation_seconds`` once per flow, then either trusts the
        providers or, with ``verify_propagation``, looks the value up.
        """
        with self._lock:
            wait = not self._waited_once and self.propagation_seconds > 0
            self._waited_once = True
        if wait:
            self.logger.info(f"Waiting {self.propagation_seconds}s for DNS propagation")
            self._sleep(self.propagation_seconds)

        if not self.verify_propagation:
            return True
        return self._txt_visible(fqdn, value)

    def _txt_visible(self, fqdn: str, value: str) -> bool:
        resolver = dns.resolver.Resolver()
        if self.resolvers:
            resolver.nameservers = self.resolvers
        try:
            answer = resolver.resolve(fqdn, "TXT")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            self.logger.debug(f"{fqdn} has no TXT records yet")
            return False
        except dns.exception.DNSException as e:
            self.logger.warning(f"TXT lookup for {fqdn} failed: {e}")
            return False

        for rdata in answer:
            if b"".join(rdata.strings).decode() == value:
                return True
        self.logger.debug(f"{fqdn} does not serve the expected value yet")
        return False

    def final_cleanup(self) -> Optional[ZoneCertError]:
        """Reconcile every touched zone back to its original configuration.

        Every zone is attempted even if an earlier one fails. The recorded
        state is drained, so each working copy is cleaned exactly once.

        Returns:
            The last error encountered, or None
        """
        with self._lock:
            originals = self._original_domains
            self._original_domains = []
            self._domains = {}
            self._waited_once = False

        if originals:
            self.logger.info("Cleaning up all records we made")

        last_error: Optional[ZoneCertError] = None
        for original in originals:
            with self._zone_lock(original.name):
                try:
                    self._run_corrections(original)
                except ZoneCertError as e:
                    self.logger.error(f"ERROR cleaning up {original.name}: {e}")
                    last_error = e
                else:
                    self.logger.info(f"Cleaned up {original.name}")
        return last_error
