from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from ..models.results import (
    CertificateFinding,
    CredentialExposureFinding,
    DanglingDnsFinding,
    EmailSpoofingFinding,
    RiskLevel,
    ScanResult,
    TyposquatFinding,
    max_risk,
)

MAX_SCORE = 100

GRADE_THRESHOLDS: tuple[tuple[int, str], ...] = ((90, "A"), (80, "B"), (70, "C"), (55, "D"))


def compute_score(penalties: Iterable[int]) -> int:
    return max(0, MAX_SCORE - sum(penalties))


def compute_grade(score: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def overall_risk(levels: Iterable[RiskLevel]) -> RiskLevel:
    return max_risk(levels)


def penalty_breakdown(result: ScanResult) -> dict[str, int]:
    return {name: finding.penalty for name, finding in result.findings().items()}


def build_result(
    domain: str,
    email_spoofing: EmailSpoofingFinding,
    typosquats: TyposquatFinding,
    certificate_transparency: CertificateFinding,
    credential_exposure: CredentialExposureFinding,
    dangling_dns: DanglingDnsFinding,
    scanned_at: Optional[datetime] = None,
) -> ScanResult:
    findings = (email_spoofing, typosquats, certificate_transparency, credential_exposure, dangling_dns)
    score = compute_score(f.penalty for f in findings)
    return ScanResult(
        domain=domain,
        score=score,
        grade=compute_grade(score),
        overall_risk=overall_risk(f.risk for f in findings),
        email_spoofing=email_spoofing,
        typosquats=typosquats,
        certificate_transparency=certificate_transparency,
        credential_exposure=credential_exposure,
        dangling_dns=dangling_dns,
        scanned_at=scanned_at or datetime.now(timezone.utc),
    )
