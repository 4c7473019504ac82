import asyncio
from datetime import datetime, timezone

from exposure_scan.models.results import RiskLevel
from exposure_scan.modules.cert_transparency import classify, run, select_suspicious

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


def _cert(cn, not_before="2026-09-15T00:00:00", serial=None, issuer="C=US, O=Let's Encrypt, CN=R11"):
    entry = {
        "issuer_name": issuer,
        "common_name": cn,
        "not_before": not_before,
        "not_after": "2026-12-14T00:00:00",
    }
    if serial:
        entry["serial_number"] = serial
    return entry


def test_filters_exact_domain_wildcard_old_and_unrelated():
    entries = [
        _cert("example.com"),
        _cert("*.example.com"),
        _cert("login-example.com", serial="01"),
        _cert("example-secure.net", not_before="2026-01-01T00:00:00"),
        _cert("unrelated.org"),
        _cert("shop.example.com", not_before="not a date"),
    ]
    certs = select_suspicious(entries, "example.com", NOW)
    assert [c.common_name for c in certs] == ["login-example.com"]
    assert certs[0].issuer.startswith("C=US")


def test_precert_and_leaf_counted_once_and_newest_first():
    entries = [
        _cert("a-example.com", "2026-09-01T00:00:00", serial="aa"),
        _cert("a-example.com", "2026-09-01T00:00:00", serial="aa"),
        _cert("b-example.com", "2026-09-20T00:00:00", serial="bb"),
    ]
    certs = select_suspicious(entries, "example.com", NOW)
    assert [c.common_name for c in certs] == ["b-example.com", "a-example.com"]


def test_result_list_is_capped():
    entries = [_cert(f"x{i}-example.com", serial=str(i)) for i in range(50)]
    assert len(select_suspicious(entries, "example.com", NOW)) == 20
    assert len(select_suspicious(entries, "example.com", NOW, limit=3)) == 3


def test_classify_thresholds():
    assert classify(0) == (RiskLevel.low, 0)
    assert classify(1) == (RiskLevel.low, 5)
    assert classify(2) == (RiskLevel.low, 5)
    assert classify(3) == (RiskLevel.medium, 10)
    assert classify(9) == (RiskLevel.medium, 10)
    assert classify(10) == (RiskLevel.high, 15)


def test_run_queries_crtsh_and_scores(fake_http, fake_response):
    entries = [_cert(f"x{i}-example.com", serial=str(i)) for i in range(4)]
    http = fake_http({"https://crt.sh/": fake_response(entries)})
    finding = asyncio.run(run("example.com", http, now=NOW))
    assert http.calls == [("https://crt.sh/", {"q": "%example.com", "output": "json"})]
    assert len(finding.certificates) == 4
    assert finding.risk == RiskLevel.medium
    assert finding.penalty == 10


def test_run_degrades_on_transport_error(fake_http):
    finding = asyncio.run(run("example.com", fake_http({"https://crt.sh/": ConnectionError("down")}), now=NOW))
    assert finding.certificates == []
    assert finding.risk == RiskLevel.low
    assert finding.penalty == 0


def test_run_degrades_on_bad_status_and_bad_json(fake_http, fake_response):
    for resp in (fake_response([], status_code=502), fake_response(ValueError("not json")), fake_response({"x": 1})):
        finding = asyncio.run(run("example.com", fake_http({"https://crt.sh/": resp}), now=NOW))
        assert finding.certificates == []
        assert finding.penalty == 0


def test_subdomain_certificates_are_kept():
    certs = select_suspicious([_cert("mail.example.com", serial="0a")], "example.com", NOW)
    assert [c.common_name for c in certs] == ["mail.example.com"]
