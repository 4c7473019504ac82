from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class NetworkLedgerEntry:
    timestamp: str
    type: str
    destination_host: str
    url: str | None = None
    method: str | None = None
    status: int | str | None = None
    error: str | None = None
    bytes_in: int = 0
    duration_ms: int = 0
    query_name: str | None = None
    record_type: str | None = None
    answers: int | None = None


@dataclass
class NetworkLedger:
    """Append-only record of every DNS query and HTTP request made during a scan."""

    entries: list[NetworkLedgerEntry] = field(default_factory=list)

    def add(self, **kwargs: Any) -> None:
        self.entries.append(NetworkLedgerEntry(timestamp=datetime.now(timezone.utc).isoformat(), **kwargs))

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [e.__dict__ for e in self.entries], "totals": self.totals()}

    def totals(self) -> dict[str, Any]:
        counts = defaultdict(int)
        errors = defaultdict(int)
        bytes_in = defaultdict(int)
        for entry in self.entries:
            counts[entry.type] += 1
            bytes_in[entry.type] += entry.bytes_in
            if entry.error:
                errors[entry.type] += 1
        return {
            "counts": dict(counts),
            "errors": dict(errors),
            "bytes_in": dict(bytes_in),
            "total_entries": len(self.entries),
        }
