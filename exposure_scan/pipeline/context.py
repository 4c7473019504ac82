from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models.config import ScanConfig
from ..utils.cache import CacheBase
from ..utils.dns import DnsResolver
from ..utils.http import HttpClient
from ..utils.network import NetworkLedger

logger = logging.getLogger(__name__)


@dataclass
class ScanContext:
    config: ScanConfig
    ledger: NetworkLedger
    http_client: HttpClient
    dns_client: DnsResolver
    cache: CacheBase | None = None
    owned: list = field(default_factory=list)

    async def close(self) -> None:
        """Close every owned client; the first failure is raised once all are closed."""
        owned, self.owned = self.owned, []
        first_error: Exception | None = None
        for resource in owned:
            try:
                await resource.close()
            except Exception as exc:
                logger.warning("client close failed", extra={"client": type(resource).__name__, "error": str(exc)})
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
