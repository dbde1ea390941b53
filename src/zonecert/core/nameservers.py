"""Nameserver resolution for managed zones."""

from typing import List

from .records import DEFAULT_TTL, DomainConfig, Nameserver, RecordConfig
from .logging import get_logger


logger = get_logger("nameservers")


def determine_nameservers(domain: DomainConfig) -> List[Nameserver]:
    """Collect the nameservers a zone should be delegated to.

    Explicitly declared nameservers come first, followed by up to
    ``number_of_nameservers`` from each attached provider (all of them when
    the count is negative, none when it is zero).
    """
    result: List[Nameserver] = []
    seen = set()

    def _add(name: str) -> None:
        name = name.lower().rstrip(".")
        if name and name not in seen:
            seen.add(name)
            result.append(Nameserver(name))

    for ns in domain.nameservers:
        _add(ns.name)

    for instance in domain.provider_instances:
        count = instance.number_of_nameservers
        if count == 0:
            continue
        logger.debug(f"Getting nameservers from: {instance.name}")
        nameservers = instance.driver.get_nameservers(domain.name)
        if count > 0:
            nameservers = nameservers[:count]
        for ns in nameservers:
            _add(ns.name)

    return result


def add_ns_records(domain: DomainConfig) -> int:
    """Add apex NS records for every nameserver that lacks one.

    Returns:
        Number of records added
    """
    ttl = DEFAULT_TTL
    ns_ttl = domain.metadata.get("ns_ttl")
    if ns_ttl is not None:
        try:
            ttl = int(ns_ttl)
        except ValueError:
            logger.warning(f"ns_ttl for {domain.name} ({ns_ttl}) is not a valid int")

    existing = {
        r.target.lower().rstrip(".")
        for r in domain.records
        if r.type == "NS" and r.name == "@"
    }

    added = 0
    for ns in domain.nameservers:
        if ns.name in existing:
            continue
        record = RecordConfig(type="NS", ttl=ttl)
        record.set_label("@", domain.name)
        record.target = ns.name + "."
        domain.records.append(record)
        existing.add(ns.name)
        added += 1

    return added
