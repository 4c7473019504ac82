from __future__ import annotations

import csv
from io import StringIO

from ..models.results import ScanResult
from ..modules.remediation import build_backlog

FIELDNAMES = ["priority", "title", "evidence", "remediation", "source", "confidence"]


def build_csv(result: ScanResult) -> str:
    buf = StringIO()
    writer = csv.DictWriter(buf, fieldnames=FIELDNAMES, extrasaction="ignore")
    writer.writeheader()
    for item in build_backlog(result):
        writer.writerow(item)
    return buf.getvalue()
