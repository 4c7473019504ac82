from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import typer
from pydantic import ValidationError

from .errors import InvalidDomainError
from .models.config import CacheMode, ResolverBackend, ScanConfig
from .models.results import ScanResult
from .modules.scoring import compute_score
from .pipeline.runner import run_scan_sync, write_artifacts, write_reports
from .utils.network import NetworkLedger

app = typer.Typer(add_completion=False)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(payload)


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=[handler], force=True)


@app.command()
def scan(
    domain: str = typer.Option(..., "--domain"),
    out: str | None = typer.Option(None, "--out", help="Write result.json, the network ledger and reports here."),
    resolver: ResolverBackend = typer.Option(
        ResolverBackend.doh,
        "--resolver",
        help="doh: DNS-over-HTTPS JSON API; system: local nameservers via dnspython.",
    ),
    doh_url: str = typer.Option(ScanConfig().doh_url, "--doh-url", envvar="EXPOSURE_SCAN_DOH_URL"),
    ct_search_url: str = typer.Option(ScanConfig().ct_search_url, "--ct-search-url", envvar="EXPOSURE_SCAN_CT_URL"),
    breach_directory_url: str = typer.Option(
        ScanConfig().breach_directory_url, "--breach-directory-url", envvar="EXPOSURE_SCAN_BREACH_URL"
    ),
    timeout_seconds: float = typer.Option(5.0, "--timeout-seconds", help="Per-call timeout."),
    scan_timeout_seconds: float = typer.Option(25.0, "--scan-timeout-seconds", help="Wall-clock budget per check."),
    batch_size: int = typer.Option(10, "--batch-size"),
    max_probed_permutations: int = typer.Option(40, "--max-probed-permutations"),
    max_requests_per_minute: int = typer.Option(60, "--max-requests-per-minute"),
    cache: CacheMode = typer.Option(CacheMode.none, "--cache"),
    cache_dir: str = typer.Option("./.exposure_scan", "--cache-dir"),
    verbose: bool = typer.Option(False, "--verbose"),
) -> None:
    """Run an exposure scan for a domain."""
    setup_logging(verbose)
    config = ScanConfig(
        resolver=resolver,
        doh_url=doh_url,
        ct_search_url=ct_search_url,
        breach_directory_url=breach_directory_url,
        timeout_seconds=timeout_seconds,
        scan_timeout_seconds=scan_timeout_seconds,
        batch_size=batch_size,
        max_probed_permutations=max_probed_permutations,
        max_requests_per_minute=max_requests_per_minute,
        cache=cache,
        cache_dir=cache_dir,
    )
    ledger = NetworkLedger()
    try:
        result = run_scan_sync(domain, config, ledger=ledger)
    except InvalidDomainError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2)

    if out:
        run_path = write_artifacts(result, out, ledger)
        typer.echo(f"artifacts written to {run_path}", err=True)
    typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))


@app.command()
def report(
    input: str = typer.Option(..., "--input", help="Path to a saved result.json."),
    out: str | None = typer.Option(None, "--out", help="Artifacts directory; defaults to <input dir>/artifacts."),
) -> None:
    """Generate report artifacts from a saved scan result."""
    setup_logging()
    path = Path(input)
    if not path.exists():
        typer.echo(f"{input} not found", err=True)
        raise typer.Exit(1)
    try:
        findings = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"invalid JSON: {exc}", err=True)
        raise typer.Exit(1)
    try:
        write_reports(findings, out or str(path.parent / "artifacts"))
    except ValidationError as exc:
        typer.echo(f"invalid scan result: {exc.error_count()} error(s)", err=True)
        raise typer.Exit(1)
    typer.echo("reports generated")


@app.command()
def validate(input: str = typer.Option(..., "--input")) -> None:
    """Validate a saved scan result."""
    setup_logging()
    try:
        data = json.loads(Path(input).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"invalid JSON: {exc}", err=True)
        raise typer.Exit(1)

    try:
        result = ScanResult.model_validate(data)
    except ValidationError as exc:
        missing = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        typer.echo(f"invalid fields: {', '.join(missing)}", err=True)
        raise typer.Exit(1)

    expected = compute_score(f.penalty for f in result.findings().values())
    if result.score != expected:
        typer.echo(f"score {result.score} does not match penalties (expected {expected})", err=True)
        raise typer.Exit(1)

    typer.echo("valid")


if __name__ == "__main__":
    app()
