from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional

from ..models.results import EmailSpoofingFinding, RiskLevel
from ..utils.dns import DnsResolver

logger = logging.getLogger(__name__)

SPF_RE = re.compile(r"^v=spf1(\s|$)", re.IGNORECASE)
DMARC_RE = re.compile(r"^v=DMARC1", re.IGNORECASE)


def parse_dmarc(txt_records: List[str]) -> tuple[Optional[str], Optional[str]]:
    """Return (record, policy). Policy is the lowercased ``p`` tag or None."""
    for rec in txt_records:
        rec = rec.strip()
        if not DMARC_RE.match(rec):
            continue
        rest = rec[len("v=DMARC1") :]
        # tags may be space-separated when the record has no ";"
        tags = rest.split(";") if ";" in rest else rest.split()
        policy = None
        for tag in tags:
            key, sep, value = tag.partition("=")
            if sep and key.strip().lower() == "p":
                policy = value.strip().lower() or None
                break
        return rec, policy
    return None, None


def parse_spf(txt_records: List[str]) -> tuple[Optional[str], bool]:
    """Return (record, strict). Strict means the record ends in a ``-all`` hard fail."""
    for rec in txt_records:
        rec = rec.strip()
        if not SPF_RE.match(rec):
            continue
        strict = any(term.lower() == "-all" for term in rec.split())
        return rec, strict
    return None, False


def assess(
    dmarc_record: Optional[str],
    dmarc_policy: Optional[str],
    spf_record: Optional[str],
    spf_strict: bool,
) -> EmailSpoofingFinding:
    details: list[str] = []

    if dmarc_record is None:
        risk, penalty = RiskLevel.critical, 40
        details.append("No DMARC record found. Anyone can spoof emails from this domain.")
    elif dmarc_policy == "reject":
        risk, penalty = RiskLevel.low, 0
        details.append("DMARC policy is 'reject': strong protection against email spoofing.")
    elif dmarc_policy == "quarantine":
        risk, penalty = RiskLevel.medium, 15
        details.append("DMARC policy is 'quarantine': spoofed emails may be flagged but not fully blocked.")
    elif dmarc_policy == "none":
        risk, penalty = RiskLevel.critical, 35
        details.append("DMARC policy is set to 'none': spoofed emails are delivered without restriction.")
    else:
        # receivers fall back to p=none when the policy tag is missing or unknown
        risk, penalty = RiskLevel.critical, 35
        details.append("DMARC record has no valid policy, so receivers treat it as 'none'.")

    if spf_record is None:
        penalty += 10
        details.append("No SPF record found.")
        if risk.severity < RiskLevel.medium.severity:
            risk = RiskLevel.medium
    elif not spf_strict:
        penalty += 5
        details.append("SPF uses soft-fail (~all) instead of hard-fail (-all).")

    return EmailSpoofingFinding(
        dmarc_record=dmarc_record,
        dmarc_policy=dmarc_policy,
        spf_record=spf_record,
        spf_strict=spf_strict,
        risk=risk,
        details=" ".join(details),
        penalty=penalty,
    )


async def run(domain: str, dns: DnsResolver) -> EmailSpoofingFinding:
    dmarc_txt, apex_txt = await asyncio.gather(
        dns.resolve(f"_dmarc.{domain}", "TXT"),
        dns.resolve(domain, "TXT"),
    )
    dmarc_record, dmarc_policy = parse_dmarc(dmarc_txt)
    spf_record, spf_strict = parse_spf(apex_txt)
    finding = assess(dmarc_record, dmarc_policy, spf_record, spf_strict)
    logger.info(
        "email spoofing assessed",
        extra={"domain": domain, "risk": finding.risk.value, "penalty": finding.penalty},
    )
    return finding
