from __future__ import annotations

from html import escape

from ..models.results import ScanResult
from ..modules.remediation import build_backlog
from .markdown import CHECK_TITLES

RISK_COLORS = {"low": "#2e7d32", "medium": "#f9a825", "high": "#ef6c00", "critical": "#c62828"}


def _cell(value: object) -> str:
    return f"<td>{escape(str(value))}</td>"


def build_html(result: ScanResult) -> str:
    check_rows = ""
    for name, finding in result.findings().items():
        details = getattr(finding, "details", "")
        check_rows += (
            "<tr>"
            + _cell(CHECK_TITLES[name])
            + f"<td style=\"color: {RISK_COLORS[finding.risk.value]}\">{escape(finding.risk.value)}</td>"
            + _cell(finding.penalty)
            + _cell(details)
            + "</tr>"
        )

    backlog_rows = ""
    for item in build_backlog(result):
        backlog_rows += (
            "<tr>"
            + _cell(item["priority"])
            + _cell(item["title"])
            + _cell(item["evidence"])
            + _cell(item["remediation"])
            + _cell(item["source"])
            + "</tr>"
        )

    risk = result.overall_risk.value
    return f"""<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
  <title>Exposure Report: {escape(result.domain)}</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 32px; color: #222; }}
    h1, h2 {{ margin-bottom: 0.25rem; }}
    .meta {{ color: #666; margin-bottom: 1.5rem; }}
    .scores {{ display: flex; gap: 24px; margin-bottom: 1rem; }}
    .score {{ padding: 12px 16px; border: 1px solid #ddd; border-radius: 8px; }}
    table {{ width: 100%; border-collapse: collapse; margin-top: 0.5rem; }}
    th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
    th {{ background: #f7f7f7; }}
  </style>
</head>
<body>
  <h1>Exposure Report: {escape(result.domain)}</h1>
  <div class=\"meta\">Scanned: {escape(result.scanned_at.isoformat())}</div>

  <div class=\"scores\">
    <div class=\"score\"><strong>Score</strong><div>{result.score}/100</div></div>
    <div class=\"score\"><strong>Grade</strong><div>{escape(result.grade)}</div></div>
    <div class=\"score\"><strong>Overall risk</strong><div style=\"color: {RISK_COLORS[risk]}\">{escape(risk)}</div></div>
  </div>

  <h2>Checks</h2>
  <table>
    <thead><tr><th>Check</th><th>Risk</th><th>Penalty</th><th>Details</th></tr></thead>
    <tbody>
      {check_rows}
    </tbody>
  </table>

  <h2>Prioritized Remediation Backlog</h2>
  <table>
    <thead>
      <tr><th>Priority</th><th>Title</th><th>Evidence</th><th>Remediation</th><th>Source</th></tr>
    </thead>
    <tbody>
      {backlog_rows or '<tr><td colspan="5">No prioritized items.</td></tr>'}
    </tbody>
  </table>
</body>
</html>"""
