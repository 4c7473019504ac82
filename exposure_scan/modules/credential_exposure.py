from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..errors import ServiceUnavailableError
from ..models.results import BreachRecord, CredentialExposureFinding, RiskLevel
from ..utils.cache import CacheBase
from ..utils.http import HttpClient
from ..utils.normalize import base_name, is_same_or_subdomain

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "breach_catalog"


def _count(value: object) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _to_record(entry: dict) -> BreachRecord:
    breach_date = entry.get("BreachDate")
    return BreachRecord(
        name=str(entry.get("Name") or ""),
        title=str(entry.get("Title") or ""),
        domain=str(entry.get("Domain") or ""),
        breach_date=str(breach_date) if breach_date else None,
        pwn_count=_count(entry.get("PwnCount")),
        data_classes=[str(dc) for dc in entry.get("DataClasses") or []],
        is_verified=bool(entry.get("IsVerified")),
    )


def match_breaches(catalog: Iterable[dict], domain: str, limit: int = 15) -> list[BreachRecord]:
    """Breaches registered to the domain (or a subdomain) or named after its brand."""
    brand = base_name(domain)
    matched = []
    for entry in catalog:
        if not isinstance(entry, dict):
            continue
        breach_domain = str(entry.get("Domain") or "").lower()
        breach_name = str(entry.get("Name") or "").lower()
        if (breach_domain and is_same_or_subdomain(breach_domain, domain)) or brand in breach_name:
            try:
                matched.append(_to_record(entry))
            except (TypeError, ValueError) as exc:
                logger.debug("skipping malformed breach entry", extra={"breach": breach_name, "error": str(exc)})
    matched.sort(key=lambda b: b.pwn_count, reverse=True)
    return matched[: max(0, limit)]


def assess(breaches: list[BreachRecord]) -> CredentialExposureFinding:
    total = sum(b.pwn_count for b in breaches)
    if not breaches:
        return CredentialExposureFinding(
            details="No known breaches found for this domain in the breach directory.",
        )

    verified = sum(1 for b in breaches if b.is_verified)
    has_passwords = any(b.exposes_passwords for b in breaches)
    count = len(breaches)

    if total > 1_000_000 or (verified >= 2 and has_passwords):
        risk, penalty = RiskLevel.critical, 25
        details = (
            f"{count} breach(es) found with {total:,} total exposed accounts. "
            "Password data compromised, high account takeover risk."
        )
    elif total > 100_000 or has_passwords:
        risk, penalty = RiskLevel.high, 20
        details = f"{count} breach(es) found with {total:,} exposed accounts. Credential stuffing attacks likely."
    else:
        risk, penalty = RiskLevel.medium, 10
        details = f"{count} breach(es) found with {total:,} exposed records. Monitor for credential reuse."

    return CredentialExposureFinding(
        breaches=breaches,
        total_exposed_accounts=total,
        risk=risk,
        penalty=penalty,
        details=details,
    )


async def fetch_catalog(http: HttpClient, url: str, cache: Optional[CacheBase] = None) -> list[dict]:
    if cache:
        cached = cache.get(CATALOG_CACHE_KEY)
        if cached:
            return cached.get("breaches", [])

    resp = await http.get(url, headers={"Accept": "application/json"})
    if resp.status_code != 200:
        raise ServiceUnavailableError(f"breach directory returned HTTP {resp.status_code}")
    catalog = resp.json()
    if not isinstance(catalog, list):
        raise ValueError("unexpected breach directory payload")

    if cache:
        cache.set(CATALOG_CACHE_KEY, {"breaches": catalog})
    return catalog


async def run(
    domain: str,
    http: HttpClient,
    url: str = "https://haveibeenpwned.com/api/v3/breaches",
    limit: int = 15,
    cache: Optional[CacheBase] = None,
) -> CredentialExposureFinding:
    try:
        catalog = await fetch_catalog(http, url, cache)
    except ServiceUnavailableError as exc:
        logger.warning("breach directory unavailable", extra={"domain": domain, "error": str(exc)})
        return CredentialExposureFinding.empty("Unable to query breach database.")
    except Exception as exc:
        logger.warning("breach directory check failed", extra={"domain": domain, "error": str(exc)})
        return CredentialExposureFinding.empty()

    return assess(match_breaches(catalog, domain, limit=limit))
