from __future__ import annotations

from ..models.results import ScanResult
from ..modules.remediation import build_backlog
from ..modules.scoring import penalty_breakdown

CHECK_TITLES = {
    "email_spoofing": "Email spoofing",
    "typosquats": "Typosquats",
    "certificate_transparency": "Certificate transparency",
    "credential_exposure": "Credential exposure",
    "dangling_dns": "Dangling DNS",
}


def build_summary(result: ScanResult) -> str:
    lines = [
        f"# Exposure Summary: {result.domain}",
        "",
        f"Scanned: {result.scanned_at.isoformat()}",
        "",
        "## Score",
        f"- Score: {result.score}/100",
        f"- Grade: {result.grade}",
        f"- Overall risk: {result.overall_risk.value}",
        "",
        "## Checks",
    ]
    penalties = penalty_breakdown(result)
    for name, finding in result.findings().items():
        lines.append(f"- {CHECK_TITLES[name]}: {finding.risk.value} (-{penalties[name]})")
    lines.append("")

    lines.append("## Findings")
    lines.append(f"- {result.email_spoofing.details}")
    for reg in result.typosquats.registered:
        lines.append(f"- Lookalike registered: {reg.domain}{' (MX)' if reg.has_mx else ''}")
    for cert in result.certificate_transparency.certificates:
        lines.append(f"- Certificate: {cert.common_name} issued {cert.not_before} by {cert.issuer}")
    if result.credential_exposure.details:
        lines.append(f"- {result.credential_exposure.details}")
    for record in result.dangling_dns.vulnerable:
        lines.append(f"- {record.status.title()} CNAME: {record.subdomain} -> {record.cname_target} ({record.provider})")
    lines.append("")

    lines.append("## Prioritized Remediation Backlog")
    backlog = build_backlog(result)
    if not backlog:
        lines.append("- No prioritized items.")
    for item in backlog:
        lines.append(f"- {item['priority']} | {item['title']}: {item['remediation']}")

    return "\n".join(lines)
