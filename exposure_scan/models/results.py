from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    RiskLevel.low: 0,
    RiskLevel.medium: 1,
    RiskLevel.high: 2,
    RiskLevel.critical: 3,
}


def max_risk(levels) -> RiskLevel:
    """Most severe tier among ``levels``; ``low`` when there are none."""
    return max(levels, key=lambda level: level.severity, default=RiskLevel.low)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ScanRequest(_Frozen):
    domain: str


class PermutationCandidate(_Frozen):
    domain: str
    strategy: str


class EmailSpoofingFinding(_Frozen):
    dmarc_record: Optional[str] = None
    dmarc_policy: Optional[str] = None
    spf_record: Optional[str] = None
    spf_strict: bool = False
    risk: RiskLevel = RiskLevel.low
    details: str = ""
    penalty: int = 0

    @classmethod
    def empty(cls) -> "EmailSpoofingFinding":
        return cls(details="Email authentication check unavailable.")


class RegisteredDomain(_Frozen):
    domain: str
    has_mx: bool = False
    has_web: bool = False


class TyposquatFinding(_Frozen):
    total_permutations: int = 0
    registered: list[RegisteredDomain] = Field(default_factory=list)
    risk: RiskLevel = RiskLevel.low
    penalty: int = 0

    @classmethod
    def empty(cls) -> "TyposquatFinding":
        return cls()

    @property
    def weaponized(self) -> list[RegisteredDomain]:
        return [r for r in self.registered if r.has_mx]


class CertificateEntry(_Frozen):
    issuer: str
    common_name: str
    not_before: str
    not_after: Optional[str] = None


class CertificateFinding(_Frozen):
    certificates: list[CertificateEntry] = Field(default_factory=list)
    risk: RiskLevel = RiskLevel.low
    penalty: int = 0

    @classmethod
    def empty(cls) -> "CertificateFinding":
        return cls()


class BreachRecord(_Frozen):
    name: str
    title: str = ""
    domain: str = ""
    breach_date: Optional[str] = None
    pwn_count: int = 0
    data_classes: list[str] = Field(default_factory=list)
    is_verified: bool = False

    @property
    def exposes_passwords(self) -> bool:
        return any("password" in dc.lower() for dc in self.data_classes)


class CredentialExposureFinding(_Frozen):
    breaches: list[BreachRecord] = Field(default_factory=list)
    total_exposed_accounts: int = 0
    risk: RiskLevel = RiskLevel.low
    penalty: int = 0
    details: str = ""

    @classmethod
    def empty(cls, details: str = "Breach database check unavailable.") -> "CredentialExposureFinding":
        return cls(details=details)


class DanglingRecord(_Frozen):
    subdomain: str
    cname_target: str
    provider: str
    status: Literal["dangling", "suspicious"]


class DanglingDnsFinding(_Frozen):
    subdomains_checked: int = 0
    vulnerable: list[DanglingRecord] = Field(default_factory=list)
    risk: RiskLevel = RiskLevel.low
    penalty: int = 0
    details: str = ""

    @classmethod
    def empty(cls) -> "DanglingDnsFinding":
        return cls(details="Dangling DNS check unavailable.")


class ScanResult(_Frozen):
    domain: str
    score: int = Field(ge=0, le=100)
    grade: Literal["A", "B", "C", "D", "F"]
    overall_risk: RiskLevel
    email_spoofing: EmailSpoofingFinding
    typosquats: TyposquatFinding
    certificate_transparency: CertificateFinding
    credential_exposure: CredentialExposureFinding
    dangling_dns: DanglingDnsFinding
    scanned_at: datetime

    def findings(self) -> dict[str, BaseModel]:
        return {
            "email_spoofing": self.email_spoofing,
            "typosquats": self.typosquats,
            "certificate_transparency": self.certificate_transparency,
            "credential_exposure": self.credential_exposure,
            "dangling_dns": self.dangling_dns,
        }
