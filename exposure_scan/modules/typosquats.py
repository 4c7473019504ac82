from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..models.results import PermutationCandidate, RegisteredDomain, RiskLevel, TyposquatFinding
from ..utils.concurrency import probe_in_batches
from ..utils.dns import DnsResolver
from .permutations import generate_candidates

logger = logging.getLogger(__name__)


async def probe_candidate(candidate: PermutationCandidate, dns: DnsResolver) -> Optional[RegisteredDomain]:
    a_records = await dns.resolve(candidate.domain, "A")
    if not a_records:
        return None
    mx_records = await dns.resolve(candidate.domain, "MX")
    return RegisteredDomain(domain=candidate.domain, has_mx=bool(mx_records), has_web=True)


def classify(registered: Sequence[RegisteredDomain]) -> tuple[RiskLevel, int]:
    # mail-capable lookalikes can send phishing, not just host a page
    weaponized = sum(1 for r in registered if r.has_mx)
    if weaponized >= 3:
        return RiskLevel.critical, 30
    if weaponized >= 1:
        return RiskLevel.high, 20
    if len(registered) >= 3:
        return RiskLevel.medium, 10
    return RiskLevel.low, 0


async def run(
    domain: str,
    dns: DnsResolver,
    max_permutations: int = 60,
    max_probed: int = 40,
    batch_size: int = 10,
) -> TyposquatFinding:
    candidates = generate_candidates(domain, limit=max_permutations)
    to_probe = candidates[: max(0, max_probed)]

    async def probe(candidate: PermutationCandidate) -> Optional[RegisteredDomain]:
        return await probe_candidate(candidate, dns)

    registered = await probe_in_batches(to_probe, probe, batch_size=batch_size)
    risk, penalty = classify(registered)
    logger.info(
        "typosquats probed",
        extra={
            "domain": domain,
            "generated": len(candidates),
            "probed": len(to_probe),
            "registered": len(registered),
            "risk": risk.value,
        },
    )
    return TyposquatFinding(
        total_permutations=len(candidates),
        registered=registered,
        risk=risk,
        penalty=penalty,
    )
