import json

from typer.testing import CliRunner

from exposure_scan.cli import app
from exposure_scan.models.results import (
    CertificateFinding,
    CredentialExposureFinding,
    DanglingDnsFinding,
    EmailSpoofingFinding,
    RiskLevel,
    TyposquatFinding,
)
from exposure_scan.modules.scoring import build_result

runner = CliRunner()


def _saved_result(tmp_path, **overrides):
    result = build_result(
        "example.com",
        EmailSpoofingFinding(risk=RiskLevel.critical, penalty=50, details="No DMARC record found."),
        TyposquatFinding(),
        CertificateFinding(),
        CredentialExposureFinding(),
        DanglingDnsFinding(),
    )
    data = result.model_dump(mode="json")
    data.update(overrides)
    path = tmp_path / "result.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_validate_accepts_consistent_result(tmp_path):
    res = runner.invoke(app, ["validate", "--input", str(_saved_result(tmp_path))])
    assert res.exit_code == 0
    assert "valid" in res.output


def test_validate_rejects_tampered_score(tmp_path):
    res = runner.invoke(app, ["validate", "--input", str(_saved_result(tmp_path, score=99))])
    assert res.exit_code == 1


def test_validate_rejects_missing_fields(tmp_path):
    path = tmp_path / "result.json"
    path.write_text(json.dumps({"domain": "example.com"}), encoding="utf-8")
    res = runner.invoke(app, ["validate", "--input", str(path)])
    assert res.exit_code == 1


def test_report_writes_artifacts(tmp_path):
    path = _saved_result(tmp_path)
    res = runner.invoke(app, ["report", "--input", str(path)])
    assert res.exit_code == 0
    for name in ("summary.md", "remediation_backlog.csv", "report.html"):
        assert (tmp_path / "artifacts" / name).exists()


def test_scan_rejects_invalid_domain():
    res = runner.invoke(app, ["scan", "--domain", "not a domain"])
    assert res.exit_code == 2


def test_report_rejects_malformed_json(tmp_path):
    path = tmp_path / "result.json"
    path.write_text("{not json", encoding="utf-8")
    res = runner.invoke(app, ["report", "--input", str(path)])
    assert res.exit_code == 1
    assert not (tmp_path / "artifacts").exists()
