from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .. import __version__
from ..errors import InvalidDomainError
from ..models.config import ScanConfig
from ..models.results import (
    CertificateFinding,
    CredentialExposureFinding,
    DanglingDnsFinding,
    EmailSpoofingFinding,
    ScanRequest,
    ScanResult,
    TyposquatFinding,
)
from ..modules import (
    cert_transparency,
    credential_exposure,
    dangling_dns,
    email_spoofing,
    scoring,
    typosquats,
)
from ..pipeline.context import ScanContext
from ..reporting.csv_backlog import build_csv
from ..reporting.html import build_html
from ..reporting.markdown import build_summary
from ..utils.cache import CacheBase, build_cache
from ..utils.dns import DnsResolver, build_resolver
from ..utils.http import HttpClient
from ..utils.network import NetworkLedger
from ..utils.normalize import normalize_domain
from ..utils.rate_limit import AsyncRateLimiter

logger = logging.getLogger(__name__)

F = TypeVar("F")


def _write_json(path: str, data: dict) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def parse_request(payload: Any) -> ScanRequest:
    if not isinstance(payload, dict):
        raise InvalidDomainError("domain is required")
    return ScanRequest(domain=normalize_domain(payload.get("domain")))


async def _run_check(name: str, coro: Awaitable[F], fallback: Callable[[], F], timeout: float) -> F:
    started = time.monotonic()
    try:
        return await asyncio.wait_for(coro, timeout)
    except asyncio.TimeoutError:
        logger.warning("check timed out", extra={"check": name, "timeout_seconds": timeout})
        return fallback()
    finally:
        logger.debug(
            "check finished",
            extra={"check": name, "duration_ms": int((time.monotonic() - started) * 1000)},
        )


def _build_context(
    config: ScanConfig,
    dns_client: Optional[DnsResolver],
    http_client: Optional[HttpClient],
    cache: Optional[CacheBase],
    ledger: Optional[NetworkLedger],
) -> ScanContext:
    ledger = ledger if ledger is not None else NetworkLedger()
    owned: list = []
    if http_client is None:
        http_client = HttpClient(
            timeout_seconds=config.timeout_seconds,
            retries=config.retries,
            rate_limiter=AsyncRateLimiter(config.max_requests_per_minute),
            ledger=ledger,
            max_bytes_per_response=config.max_bytes_per_response,
            user_agent=config.user_agent,
        )
        owned.append(http_client)
    if dns_client is None:
        dns_client = build_resolver(config, ledger)
        owned.append(dns_client)
    if cache is None:
        cache = build_cache(config.cache.value, config.cache_dir, config.cache_ttl_seconds)
    return ScanContext(
        config=config,
        ledger=ledger,
        http_client=http_client,
        dns_client=dns_client,
        cache=cache,
        owned=owned,
    )


async def run_scan(
    domain: Any,
    config: Optional[ScanConfig] = None,
    *,
    dns_client: Optional[DnsResolver] = None,
    http_client: Optional[HttpClient] = None,
    cache: Optional[CacheBase] = None,
    ledger: Optional[NetworkLedger] = None,
) -> ScanResult:
    """Scan ``domain`` and return the scored result.

    Raises InvalidDomainError before any network activity when the input is
    unusable. Third-party failures never raise; they degrade the affected
    check to its benign outcome. A check that outlives ``scan_timeout_seconds``
    is cancelled and degraded the same way.
    """
    target = normalize_domain(domain)
    config = config or ScanConfig()
    context = _build_context(config, dns_client, http_client, cache, ledger)
    budget = config.scan_timeout_seconds
    logger.info("scan started", extra={"domain": target})

    try:
        outcomes = await asyncio.gather(
            _run_check(
                "email_spoofing",
                email_spoofing.run(target, context.dns_client),
                EmailSpoofingFinding.empty,
                budget,
            ),
            _run_check(
                "typosquats",
                typosquats.run(
                    target,
                    context.dns_client,
                    max_permutations=config.max_permutations,
                    max_probed=config.max_probed_permutations,
                    batch_size=config.batch_size,
                ),
                TyposquatFinding.empty,
                budget,
            ),
            _run_check(
                "certificate_transparency",
                cert_transparency.run(
                    target,
                    context.http_client,
                    url=config.ct_search_url,
                    lookback_days=config.ct_lookback_days,
                    limit=config.max_certificates,
                ),
                CertificateFinding.empty,
                budget,
            ),
            _run_check(
                "credential_exposure",
                credential_exposure.run(
                    target,
                    context.http_client,
                    url=config.breach_directory_url,
                    limit=config.max_breaches,
                    cache=context.cache,
                ),
                CredentialExposureFinding.empty,
                budget,
            ),
            _run_check(
                "dangling_dns",
                dangling_dns.run(
                    target,
                    context.dns_client,
                    max_subdomains=config.max_subdomains,
                    batch_size=config.batch_size,
                ),
                DanglingDnsFinding.empty,
                budget,
            ),
            return_exceptions=True,
        )
    finally:
        await context.close()

    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    result = scoring.build_result(target, *outcomes)
    logger.info(
        "scan finished",
        extra={
            "domain": target,
            "score": result.score,
            "grade": result.grade,
            "overall_risk": result.overall_risk.value,
        },
    )
    return result


def run_scan_sync(domain: Any, config: Optional[ScanConfig] = None, **kwargs: Any) -> ScanResult:
    return asyncio.run(run_scan(domain, config, **kwargs))


async def handle_scan_request(payload: Any, config: Optional[ScanConfig] = None, **kwargs: Any) -> tuple[int, dict]:
    """Request/response entry point: ``({"domain": ...}) -> (status, body)``."""
    try:
        request = parse_request(payload)
    except InvalidDomainError as exc:
        return 400, {"error": str(exc)}

    try:
        result = await run_scan(request.domain, config, **kwargs)
    except InvalidDomainError as exc:
        return 400, {"error": str(exc)}
    except Exception as exc:
        logger.exception("scan failed", extra={"domain": request.domain})
        return 500, {"error": str(exc) or "Scan failed"}
    return 200, result.model_dump(mode="json")


def write_artifacts(result: ScanResult, out_dir: str, ledger: Optional[NetworkLedger] = None) -> str:
    """Write the result, the reports and (when given) the network ledger under ``out_dir``."""
    run_path = f"{out_dir}/{result.domain}/{result.scanned_at.strftime('%Y%m%d_%H%M%S')}"
    payload = result.model_dump(mode="json")

    _write_json(f"{run_path}/result.json", payload)
    write_reports(payload, f"{run_path}/artifacts")
    if ledger is not None:
        _write_json(f"{run_path}/network_ledger.json", ledger.to_dict())
    _write_json(
        f"{run_path}/run_manifest.json",
        {
            "tool_version": __version__,
            "written_at": datetime.now(timezone.utc).isoformat(),
            "ledger_totals": ledger.totals() if ledger is not None else None,
        },
    )
    return run_path


def write_reports(findings: dict, artifacts_path: str) -> None:
    result = ScanResult.model_validate(findings)
    Path(artifacts_path).mkdir(parents=True, exist_ok=True)
    with open(f"{artifacts_path}/summary.md", "w", encoding="utf-8") as f:
        f.write(build_summary(result))
    with open(f"{artifacts_path}/remediation_backlog.csv", "w", encoding="utf-8") as f:
        f.write(build_csv(result))
    with open(f"{artifacts_path}/report.html", "w", encoding="utf-8") as f:
        f.write(build_html(result))
