from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import List, Protocol

import dns.asyncresolver

from ..errors import ServiceUnavailableError
from ..models.config import ResolverBackend, ScanConfig
from .http import HttpClient
from .network import NetworkLedger

logger = logging.getLogger(__name__)

RECORD_TYPE_CODES = {"A": 1, "NS": 2, "CNAME": 5, "MX": 15, "TXT": 16, "AAAA": 28}

_TXT_CHUNK_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


class DnsResolver(Protocol):
    async def resolve(self, name: str, record_type: str) -> List[str]: ...

    async def close(self) -> None: ...


def clean_answer(record_type: str, value: str) -> str:
    """Normalize one answer to its bare value.

    TXT character-strings are unquoted and concatenated, hostnames lose the
    root dot.
    """
    value = value.strip()
    if record_type == "TXT":
        chunks = _TXT_CHUNK_RE.findall(value)
        if chunks:
            return "".join(chunk.replace('\\"', '"') for chunk in chunks)
        return value
    if record_type in ("CNAME", "MX", "NS"):
        return value.rstrip(".")
    return value


class _LedgerMixin:
    ledger: NetworkLedger | None

    def _record(self, name: str, record_type: str, start: float, answers: int, error: str | None) -> None:
        if not self.ledger:
            return
        self.ledger.add(
            type="dns",
            destination_host=name,
            query_name=name,
            record_type=record_type,
            method="DNS",
            status="ok" if error is None else "error",
            error=error,
            answers=answers,
            duration_ms=int((time.monotonic() - start) * 1000),
        )


class DohResolver(_LedgerMixin):
    """Resolver backed by a DNS-over-HTTPS JSON endpoint (``application/dns-json``)."""

    def __init__(
        self,
        url: str = "https://cloudflare-dns.com/dns-query",
        timeout_seconds: float = 5.0,
        ledger: NetworkLedger | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.ledger = ledger
        self._owns_http = http is None
        self.http = http or HttpClient(timeout_seconds=timeout_seconds)

    async def close(self) -> None:
        if self._owns_http:
            await self.http.close()

    async def resolve(self, name: str, record_type: str) -> List[str]:
        record_type = record_type.upper()
        start = time.monotonic()
        error: str | None = None
        values: list[str] = []
        try:
            values = await asyncio.wait_for(self._query(name, record_type), self.timeout_seconds)
            return values
        except asyncio.TimeoutError:
            error = "timeout"
            logger.debug("dns query timed out", extra={"domain": name, "type": record_type})
            return []
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            logger.debug("dns lookup failed", extra={"domain": name, "type": record_type, "error": error})
            return []
        finally:
            self._record(name, record_type, start, len(values), error)

    async def _query(self, name: str, record_type: str) -> List[str]:
        resp = await self.http.get(
            self.url,
            params={"name": name, "type": record_type},
            headers={"Accept": "application/dns-json"},
        )
        if resp.status_code != 200:
            raise ServiceUnavailableError(f"resolver returned HTTP {resp.status_code}")
        payload = resp.json()
        wanted = RECORD_TYPE_CODES.get(record_type)
        values = []
        for answer in payload.get("Answer") or []:
            if wanted is not None and answer.get("type") != wanted:
                continue
            data = answer.get("data")
            if data:
                values.append(clean_answer(record_type, str(data)))
        return values


class SystemResolver(_LedgerMixin):
    """Resolver using the host's configured nameservers through dnspython."""

    def __init__(self, timeout_seconds: float = 5.0, ledger: NetworkLedger | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.ledger = ledger
        self._resolver = dns.asyncresolver.Resolver()
        self._resolver.lifetime = timeout_seconds

    async def close(self) -> None:
        return None

    async def resolve(self, name: str, record_type: str) -> List[str]:
        record_type = record_type.upper()
        start = time.monotonic()
        error: str | None = None
        values: list[str] = []
        try:
            answers = await self._resolver.resolve(name, record_type)
            values = [clean_answer(record_type, r.to_text()) for r in answers]
            return values
        except Exception as exc:  # pragma: no cover - network
            error = str(exc) or type(exc).__name__
            logger.debug("dns lookup failed", extra={"domain": name, "type": record_type, "error": error})
            return []
        finally:
            self._record(name, record_type, start, len(values), error)


def build_resolver(config: ScanConfig, ledger: NetworkLedger | None = None) -> DnsResolver:
    if config.resolver == ResolverBackend.system:
        return SystemResolver(timeout_seconds=config.timeout_seconds, ledger=ledger)
    return DohResolver(url=config.doh_url, timeout_seconds=config.timeout_seconds, ledger=ledger)
