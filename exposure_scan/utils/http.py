from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from ..errors import ResponseTooLargeError
from .network import NetworkLedger
from .rate_limit import AsyncRateLimiter

logger = logging.getLogger(__name__)


class HttpClient:
    """Async GET client for read-only intelligence APIs.

    Bodies are streamed and cut off at ``max_bytes_per_response`` so a
    single oversized search result cannot stall a scan. Failures raise;
    callers decide how to degrade.
    """

    def __init__(
        self,
        timeout_seconds: float = 5.0,
        retries: int = 0,
        rate_limiter: Optional[AsyncRateLimiter] = None,
        ledger: NetworkLedger | None = None,
        max_bytes_per_response: int = 16 * 1024 * 1024,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = httpx.Timeout(timeout_seconds)
        self.retries = retries
        self.rate_limiter = rate_limiter
        self.ledger = ledger
        self.max_bytes_per_response = max_bytes_per_response
        headers = {"User-Agent": user_agent} if user_agent else None
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
        ledger_type: str = "http",
    ) -> httpx.Response:
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            if self.rate_limiter:
                await self.rate_limiter.wait()

            start = time.monotonic()
            try:
                async with self._client.stream("GET", url, params=params, headers=headers) as resp:
                    content = bytearray()
                    async for chunk in resp.aiter_bytes():
                        content.extend(chunk)
                        if len(content) > self.max_bytes_per_response:
                            raise ResponseTooLargeError(
                                f"response from {resp.request.url.host} exceeded {self.max_bytes_per_response} bytes"
                            )
                    response = httpx.Response(
                        status_code=resp.status_code,
                        headers=resp.headers,
                        content=bytes(content),
                        request=resp.request,
                    )
                    if self.ledger:
                        self.ledger.add(
                            type=ledger_type,
                            destination_host=resp.request.url.host or "",
                            url=str(resp.request.url),
                            method="GET",
                            status=resp.status_code,
                            bytes_in=len(content),
                            duration_ms=int((time.monotonic() - start) * 1000),
                        )
                    return response
            except Exception as exc:
                last_exc = exc
                if self.ledger:
                    self.ledger.add(
                        type=ledger_type,
                        destination_host=httpx.URL(url).host or "",
                        url=url,
                        method="GET",
                        status=None,
                        error=str(exc) or type(exc).__name__,
                        duration_ms=int((time.monotonic() - start) * 1000),
                    )
                logger.debug("http error", extra={"url": url, "error": str(exc), "attempt": attempt})
                if isinstance(exc, ResponseTooLargeError) or attempt == self.retries:
                    break
                await asyncio.sleep(0.2 * (attempt + 1))
        if last_exc:
            raise last_exc
        raise RuntimeError("http request failed")
