"""DNS-01 validation record helpers."""

import base64
import hashlib
from typing import Tuple


CHALLENGE_LABEL = "_acme-challenge"


def get_record(domain: str, key_authorization: str) -> Tuple[str, str]:
    """Return the FQDN and TXT value that prove control of ``domain``.

    The value is the unpadded base64url SHA-256 digest of the key
    authorization; the name is ``_acme-challenge.<domain>.``.
    """
    digest = hashlib.sha256(key_authorization.encode("ascii")).digest()
    value = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    domain = domain.lower().rstrip(".")
    if domain.startswith("*."):
        domain = domain[2:]
    return f"{CHALLENGE_LABEL}.{domain}.", value
