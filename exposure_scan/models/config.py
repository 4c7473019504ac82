from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ResolverBackend(str, Enum):
    doh = "doh"
    system = "system"


class CacheMode(str, Enum):
    sqlite = "sqlite"
    files = "files"
    none = "none"


class ScanConfig(BaseModel):
    resolver: ResolverBackend = ResolverBackend.doh
    doh_url: str = "https://cloudflare-dns.com/dns-query"
    ct_search_url: str = "https://crt.sh/"
    breach_directory_url: str = "https://haveibeenpwned.com/api/v3/breaches"
    user_agent: str = "exposure-scan"

    timeout_seconds: float = Field(5.0, gt=0)
    scan_timeout_seconds: float = Field(25.0, gt=0)
    retries: int = Field(0, ge=0)
    max_requests_per_minute: int = Field(60, ge=1)
    max_bytes_per_response: int = Field(16 * 1024 * 1024, ge=1)

    batch_size: int = Field(10, ge=1)
    max_permutations: int = Field(60, ge=0)
    max_probed_permutations: int = Field(40, ge=0)
    max_subdomains: int = Field(40, ge=0)
    max_certificates: int = Field(20, ge=0)
    ct_lookback_days: int = Field(90, ge=1)
    max_breaches: int = Field(15, ge=0)

    cache: CacheMode = CacheMode.none
    cache_dir: str = "./.exposure_scan"
    cache_ttl_seconds: int = Field(86_400, ge=0)
