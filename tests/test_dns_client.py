import asyncio

import httpx

from exposure_scan.utils.dns import DohResolver, clean_answer
from exposure_scan.utils.http import HttpClient
from exposure_scan.utils.network import NetworkLedger


def _resolver(handler, timeout_seconds=5.0, ledger=None):
    http = HttpClient(timeout_seconds=timeout_seconds, transport=httpx.MockTransport(handler))
    return DohResolver(url="https://doh.test/dns-query", timeout_seconds=timeout_seconds, ledger=ledger, http=http)


def _answers(*rows):
    return {"Status": 0, "Answer": [{"name": n, "type": t, "TTL": 300, "data": d} for n, t, d in rows]}


def test_clean_answer():
    assert clean_answer("TXT", '"v=spf1 " "-all"') == "v=spf1 -all"
    assert clean_answer("TXT", "v=DMARC1; p=none") == "v=DMARC1; p=none"
    assert clean_answer("CNAME", "target.github.io.") == "target.github.io"
    assert clean_answer("A", "192.0.2.1") == "192.0.2.1"


def test_answers_are_filtered_by_type():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(
            200,
            json=_answers(
                ("www.example.com", 5, "edge.example.net."),
                ("edge.example.net", 1, "192.0.2.10"),
            ),
        )

    resolver = _resolver(handler)
    assert asyncio.run(resolver.resolve("www.example.com", "A")) == ["192.0.2.10"]
    assert asyncio.run(resolver.resolve("www.example.com", "cname")) == ["edge.example.net"]
    assert seen[0] == {"name": "www.example.com", "type": "A"}
    assert seen[1]["type"] == "CNAME"


def test_txt_answers_are_unquoted():
    def handler(request):
        return httpx.Response(200, json=_answers(("_dmarc.example.com", 16, '"v=DMARC1; p=reject"')))

    assert asyncio.run(_resolver(handler).resolve("_dmarc.example.com", "TXT")) == ["v=DMARC1; p=reject"]


def test_nxdomain_without_answers_is_empty():
    def handler(request):
        return httpx.Response(200, json={"Status": 3})

    assert asyncio.run(_resolver(handler).resolve("missing.example.com", "A")) == []


def test_server_error_is_empty_and_recorded():
    ledger = NetworkLedger()

    def handler(request):
        return httpx.Response(500)

    assert asyncio.run(_resolver(handler, ledger=ledger).resolve("example.com", "A")) == []
    dns_entries = [e for e in ledger.entries if e.type == "dns"]
    assert len(dns_entries) == 1
    assert dns_entries[0].status == "error"
    assert "500" in dns_entries[0].error


def test_transport_error_is_empty():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert asyncio.run(_resolver(handler).resolve("example.com", "MX")) == []


def test_slow_resolver_times_out():
    ledger = NetworkLedger()

    async def handler(request):
        await asyncio.sleep(2)
        return httpx.Response(200, json=_answers(("example.com", 1, "192.0.2.1")))

    resolver = _resolver(handler, timeout_seconds=0.1, ledger=ledger)
    assert asyncio.run(resolver.resolve("example.com", "A")) == []
    assert ledger.entries[-1].error == "timeout"


def test_successful_lookup_is_recorded():
    ledger = NetworkLedger()

    def handler(request):
        return httpx.Response(200, json=_answers(("example.com", 1, "192.0.2.1"), ("example.com", 1, "192.0.2.2")))

    asyncio.run(_resolver(handler, ledger=ledger).resolve("example.com", "A"))
    entry = ledger.entries[-1]
    assert entry.type == "dns"
    assert entry.query_name == "example.com"
    assert entry.record_type == "A"
    assert entry.answers == 2
    assert entry.status == "ok"
