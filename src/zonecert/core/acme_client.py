"""ACME transport: drives orders and authorizations against a certificate authority.

The transport owns everything protocol related (JWS signing, orders,
authorizations, finalization). DNS record handling is delegated to a
``DNS01Provider`` registered with ``set_dns01_provider``.
"""

import datetime
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Tuple

import josepy as jose
from josepy.jwk import JWKEC, JWKRSA
from acme import challenges, client, crypto_util, messages
from acme import errors as acme_errors
from requests import exceptions as requests_errors
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography import x509

from .certificate_utils import (
    dns_names,
    issuer_common_name,
    load_first_certificate,
    split_pem_chain,
)
from .dns01 import get_record
from .errors import ProtocolError, ZoneCertError
from .logging import get_logger
from .storage import Account, CertificateResource


HTTP01 = "http-01"
DNS01 = "dns-01"
TLSALPN01 = "tls-alpn-01"

PreCheck = Callable[[str, str], bool]


class KeyType(str, Enum):
    RSA2048 = "RSA2048"
    EC256 = "EC256"


@dataclass
class TransportConfig:
    """Settings applied to a transport before it runs an order."""

    directory_url: str
    key_type: KeyType = KeyType.RSA2048
    disabled_challenges: FrozenSet[str] = field(default_factory=frozenset)
    propagation_timeout: int = 60
    propagation_interval: int = 2
    finalize_timeout: int = 90
    user_agent: str = "zonecert"


class DNS01Provider(ABC):
    """Publishes and withdraws DNS-01 validation records."""

    @abstractmethod
    def present(self, domain: str, token: str, key_auth: str) -> None:
        """Make the validation record for ``domain`` visible."""

    @abstractmethod
    def cleanup(self, domain: str, token: str, key_auth: str) -> None:
        """Remove the validation record for ``domain``."""


class ChallengeTransport(ABC):
    """Client side of the ACME protocol."""

    def __init__(self, account: Optional[Account], config: TransportConfig):
        self.account = account
        self.config = config
        self.dns01_provider: Optional[DNS01Provider] = None
        self.pre_check: Optional[PreCheck] = None

    def set_dns01_provider(self, provider: DNS01Provider, pre_check: Optional[PreCheck] = None) -> None:
        self.dns01_provider = provider
        self.pre_check = pre_check

    def remove_challenge(self, challenge_type: str) -> None:
        self.config.disabled_challenges = frozenset(self.config.disabled_challenges | {challenge_type})

    @abstractmethod
    def register(self, email: str) -> Account:
        """Create a new account with the terms of service agreed."""

    @abstractmethod
    def obtain(self, names: List[str], must_staple: bool = False) -> CertificateResource:
        """Obtain a new certificate for ``names``."""

    @abstractmethod
    def renew(
        self,
        resource: CertificateResource,
        force: bool = True,
        must_staple: bool = False,
        preferred_chain: Optional[str] = None
    ) -> CertificateResource:
        """Renew ``resource`` for the same names."""


def _generate_private_key(key_type: KeyType) -> bytes:
    if key_type == KeyType.EC256:
        key = ec.generate_private_key(ec.SECP256R1())
    else:
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def _account_jwk(key_pem: bytes) -> Tuple[jose.JWK, jose.JWASignature]:
    key = serialization.load_pem_private_key(key_pem, password=None)
    if isinstance(key, ec.EllipticCurvePrivateKey):
        alg = {256: jose.ES256, 384: jose.ES384, 521: jose.ES512}[key.curve.key_size]
        return JWKEC(key=key), alg
    return JWKRSA(key=key), jose.RS256


def select_chain(fullchain_pem: str, alternatives: List[str], preferred: Optional[str]) -> str:
    """Pick the chain whose topmost issuer CN matches ``preferred``.

    Falls back to the default chain when nothing matches.
    """
    if not preferred:
        return fullchain_pem
    for chain in [fullchain_pem] + list(alternatives):
        blocks = split_pem_chain(chain.encode())
        if not blocks:
            continue
        top = x509.load_pem_x509_certificate(blocks[-1])
        if issuer_common_name(top) == preferred:
            return chain
    return fullchain_pem


class ACMEClient(ChallengeTransport):
    """``ChallengeTransport`` built on the ``acme`` library."""

    def __init__(self, account: Optional[Account], config: TransportConfig):
        super().__init__(account, config)
        self.logger = get_logger("acme_client")

    def _client(self, key_pem: bytes, regr: Optional[messages.RegistrationResource]) -> Tuple[client.ClientV2, jose.JWK]:
        jwk, alg = _account_jwk(key_pem)
        net = client.ClientNetwork(jwk, account=regr, alg=alg, user_agent=self.config.user_agent)
        try:
            directory = client.ClientV2.get_directory(self.config.directory_url, net)
        except (acme_errors.Error, requests_errors.RequestException, ValueError) as e:
            raise ProtocolError(f"Could not load ACME directory {self.config.directory_url}: {e}") from e
        return client.ClientV2(directory, net), jwk

    def _account_client(self) -> Tuple[client.ClientV2, jose.JWK]:
        if self.account is None:
            raise ProtocolError("No ACME account configured")
        regr = None
        if self.account.registration:
            regr = messages.RegistrationResource.from_json(self.account.registration)
        return self._client(self.account.key_pem, regr)

    def register(self, email: str) -> Account:
        key = ec.generate_private_key(ec.SECP384R1())
        key_pem = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        acme, _ = self._client(key_pem, None)
        try:
            regr = acme.new_account(
                messages.NewRegistration.from_data(email=email, terms_of_service_agreed=True)
            )
        except (acme_errors.Error, requests_errors.RequestException) as e:
            raise ProtocolError(f"ACME account registration failed: {e}") from e
        self.account = Account(
            email=email,
            key_pem=key_pem,
            registration=json.loads(regr.json_dumps()),
        )
        return self.account

    def obtain(self, names: List[str], must_staple: bool = False) -> CertificateResource:
        key_pem = _generate_private_key(self.config.key_type)
        csr_pem = crypto_util.make_csr(key_pem, names, must_staple=must_staple)
        return self._order(csr_pem, key_pem, names[0], None)

    def renew(
        self,
        resource: CertificateResource,
        force: bool = True,
        must_staple: bool = False,
        preferred_chain: Optional[str] = None
    ) -> CertificateResource:
        cert = load_first_certificate(resource.certificate)

        if not force:
            lifetime = cert.not_valid_after_utc - cert.not_valid_before_utc
            remaining = cert.not_valid_after_utc - datetime.datetime.now(datetime.timezone.utc)
            if remaining > lifetime / 3:
                self.logger.info(f"Certificate for {resource.domain} is not due for renewal")
                return resource

        names = dns_names(cert)
        if not names:
            raise ProtocolError(f"Certificate for {resource.domain} carries no DNS names")

        if resource.csr:
            csr_pem = resource.csr
            key_pem = resource.private_key
        else:
            key_pem = resource.private_key or _generate_private_key(self.config.key_type)
            csr_pem = crypto_util.make_csr(key_pem, names, must_staple=must_staple)

        return self._order(csr_pem, key_pem, resource.domain or names[0], preferred_chain)

    def _select_challenge(self, authz: messages.AuthorizationResource) -> messages.ChallengeBody:
        domain = authz.body.identifier.value
        if DNS01 in self.config.disabled_challenges:
            raise ProtocolError(f"No solvable challenge for {domain}: dns-01 is disabled")
        for challb in authz.body.challenges:
            if isinstance(challb.chall, challenges.DNS01):
                return challb
        raise ProtocolError(f"No dns-01 challenge offered for {domain}")

    def _wait_until_ready(self, fqdn: str, value: str) -> None:
        if self.pre_check is None:
            return
        deadline = time.monotonic() + self.config.propagation_timeout
        while True:
            if self.pre_check(fqdn, value):
                return
            if time.monotonic() >= deadline:
                raise ProtocolError(f"Time limit exceeded waiting for {fqdn} to propagate")
            time.sleep(self.config.propagation_interval)

    def _order(
        self,
        csr_pem: bytes,
        key_pem: bytes,
        domain: str,
        preferred_chain: Optional[str]
    ) -> CertificateResource:
        if self.dns01_provider is None:
            raise ProtocolError("No DNS-01 provider registered")

        acme, jwk = self._account_client()
        try:
            order = acme.new_order(csr_pem)
        except (acme_errors.Error, requests_errors.RequestException) as e:
            raise ProtocolError(f"Creating order for {domain} failed: {e}") from e

        presented = []
        failures = {}
        try:
            for authz in order.authorizations:
                if authz.body.status == messages.STATUS_VALID:
                    continue
                name = authz.body.identifier.value
                try:
                    challb = self._select_challenge(authz)
                    token = challb.chall.encode("token")
                    key_auth = challb.chall.key_authorization(jwk)
                    self.dns01_provider.present(name, token, key_auth)
                except ZoneCertError as e:
                    self.logger.error(f"Could not present challenge for {name}: {e}")
                    failures[name] = e
                    continue
                presented.append((name, token, key_auth, challb))

            for name, token, key_auth, challb in presented:
                fqdn, value = get_record(name, key_auth)
                try:
                    self._wait_until_ready(fqdn, value)
                    acme.answer_challenge(challb, challb.chall.response(jwk))
                except (ZoneCertError, acme_errors.Error, requests_errors.RequestException) as e:
                    failures[name] = e

            if failures:
                detail = "; ".join(f"{name}: {err}" for name, err in failures.items())
                first = next(iter(failures.values()))
                raise ProtocolError(f"Authorization failed for {len(failures)} name(s): {detail}") from first

            deadline = datetime.datetime.now() + datetime.timedelta(seconds=self.config.finalize_timeout)
            try:
                order = acme.poll_and_finalize(order, deadline)
            except (acme_errors.Error, requests_errors.RequestException) as e:
                raise ProtocolError(f"Finalizing order for {domain} failed: {e}") from e
        finally:
            for name, token, key_auth, _ in presented:
                self.dns01_provider.cleanup(name, token, key_auth)

        fullchain = select_chain(
            order.fullchain_pem, order.alternative_fullchains_pem or [], preferred_chain
        )
        blocks = split_pem_chain(fullchain.encode())
        return CertificateResource(
            domain=domain,
            certificate=fullchain.encode(),
            private_key=key_pem,
            issuer_certificate=b"".join(blocks[1:]),
            csr=csr_pem,
            cert_url=order.uri or "",
            cert_stable_url=order.uri or "",
        )
