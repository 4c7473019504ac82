from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from ..models.results import CertificateEntry, CertificateFinding, RiskLevel
from ..utils.http import HttpClient
from ..utils.normalize import base_name

logger = logging.getLogger(__name__)


def _parse_timestamp(value: object) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def select_suspicious(
    entries: Iterable[dict],
    domain: str,
    now: datetime,
    lookback_days: int = 90,
    limit: int = 20,
) -> list[CertificateEntry]:
    """Recent certificates naming the brand that are not the domain itself.

    Precertificate and leaf entries for one certificate share a serial and
    are counted once. Newest first.
    """
    domain = domain.lower()
    brand = base_name(domain)
    cutoff = now - timedelta(days=lookback_days)

    seen: set = set()
    picked: list[tuple[datetime, CertificateEntry]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        cn = str(entry.get("common_name") or "").lower()
        if not cn or cn in (domain, f"*.{domain}") or brand not in cn:
            continue
        issued = _parse_timestamp(entry.get("not_before"))
        if issued is None or issued < cutoff:
            continue
        key = entry.get("serial_number") or (cn, entry.get("issuer_name"), entry.get("not_before"))
        if key in seen:
            continue
        seen.add(key)
        picked.append(
            (
                issued,
                CertificateEntry(
                    issuer=str(entry.get("issuer_name") or "Unknown"),
                    common_name=cn,
                    not_before=str(entry.get("not_before")),
                    not_after=str(entry["not_after"]) if entry.get("not_after") else None,
                ),
            )
        )

    picked.sort(key=lambda item: item[0], reverse=True)
    return [cert for _, cert in picked[: max(0, limit)]]


def classify(count: int) -> tuple[RiskLevel, int]:
    if count >= 10:
        return RiskLevel.high, 15
    if count >= 3:
        return RiskLevel.medium, 10
    if count >= 1:
        return RiskLevel.low, 5
    return RiskLevel.low, 0


async def run(
    domain: str,
    http: HttpClient,
    url: str = "https://crt.sh/",
    lookback_days: int = 90,
    limit: int = 20,
    now: Optional[datetime] = None,
) -> CertificateFinding:
    try:
        resp = await http.get(
            url,
            params={"q": f"%{domain}", "output": "json"},
            headers={"Accept": "application/json"},
        )
        if resp.status_code != 200:
            logger.warning("ct search unavailable", extra={"domain": domain, "status": resp.status_code})
            return CertificateFinding.empty()
        data = resp.json()
    except Exception as exc:
        logger.warning("ct search failed", extra={"domain": domain, "error": str(exc)})
        return CertificateFinding.empty()

    if not isinstance(data, list):
        return CertificateFinding.empty()

    certificates = select_suspicious(
        data,
        domain,
        now or datetime.now(timezone.utc),
        lookback_days=lookback_days,
        limit=limit,
    )
    risk, penalty = classify(len(certificates))
    return CertificateFinding(certificates=certificates, risk=risk, penalty=penalty)
