from __future__ import annotations

from ..models.results import RiskLevel, ScanResult

PRIORITY_BY_RISK = {
    RiskLevel.critical: "Critical",
    RiskLevel.high: "High",
    RiskLevel.medium: "Medium",
    RiskLevel.low: "Low",
}

_PRIORITY_ORDER = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3}


def _item(priority: str, title: str, evidence: str, remediation: str, source: str, confidence: str = "high") -> dict:
    return {
        "priority": priority,
        "title": title,
        "evidence": evidence,
        "remediation": remediation,
        "source": source,
        "confidence": confidence,
    }


def build_backlog(result: ScanResult) -> list[dict]:
    """Prioritized remediation items for every check that cost points."""
    backlog = []

    email = result.email_spoofing
    if email.dmarc_record is None:
        backlog.append(
            _item(
                "Critical",
                "Publish DMARC record",
                "No DMARC record found",
                "Create a DMARC record with p=quarantine, then move to p=reject",
                "email_spoofing",
            )
        )
    elif email.dmarc_policy != "reject" and email.penalty:
        backlog.append(
            _item(
                PRIORITY_BY_RISK[email.risk],
                "Enforce DMARC",
                f"DMARC policy is {email.dmarc_policy or 'missing'}",
                "Move to p=reject once aggregate reports show legitimate mail aligned",
                "email_spoofing",
            )
        )
    if email.spf_record is None:
        backlog.append(
            _item("High", "Publish SPF record", "No SPF TXT record found",
                  "Create an SPF record listing authorized senders and ending in -all", "email_spoofing")
        )
    elif not email.spf_strict:
        backlog.append(
            _item("Medium", "Harden SPF", email.spf_record,
                  "Replace ~all/?all with -all once all senders are listed", "email_spoofing")
        )

    typos = result.typosquats
    if typos.penalty:
        names = ", ".join(r.domain for r in (typos.weaponized or typos.registered)[:5])
        backlog.append(
            _item(
                PRIORITY_BY_RISK[typos.risk],
                "Take down or monitor lookalike domains",
                f"{len(typos.registered)} registered lookalike(s), {len(typos.weaponized)} with MX: {names}",
                "File registrar abuse reports and block the domains at the mail gateway",
                "typosquats",
                "medium",
            )
        )

    ct = result.certificate_transparency
    if ct.penalty:
        backlog.append(
            _item(
                PRIORITY_BY_RISK[ct.risk],
                "Review lookalike certificates",
                f"{len(ct.certificates)} recent certificate(s) naming the brand",
                "Confirm ownership of each certificate and report the rest to the issuing CA",
                "certificate_transparency",
                "medium",
            )
        )

    creds = result.credential_exposure
    if creds.penalty:
        backlog.append(
            _item(
                PRIORITY_BY_RISK[creds.risk],
                "Reset exposed credentials",
                creds.details,
                "Force password resets for affected accounts and enforce MFA",
                "credential_exposure",
            )
        )

    for record in result.dangling_dns.vulnerable:
        backlog.append(
            _item(
                "Critical" if record.status == "dangling" else "Medium",
                f"Fix {record.status} CNAME on {record.subdomain}",
                f"{record.subdomain} -> {record.cname_target} ({record.provider})",
                "Remove the DNS record or reclaim the resource at the provider",
                "dangling_dns",
            )
        )

    backlog.sort(key=lambda item: _PRIORITY_ORDER[item["priority"]])
    return backlog
