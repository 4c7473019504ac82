import asyncio

import httpx
import pytest

from exposure_scan.errors import ResponseTooLargeError
from exposure_scan.utils.http import HttpClient
from exposure_scan.utils.network import NetworkLedger


def test_get_returns_buffered_response_and_records_ledger():
    ledger = NetworkLedger()
    seen = {}

    def handler(request):
        seen["ua"] = request.headers.get("user-agent")
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, json=[{"id": 1}])

    async def go():
        client = HttpClient(ledger=ledger, user_agent="exposure-scan", transport=httpx.MockTransport(handler))
        try:
            return await client.get("https://crt.sh/", params={"q": "%example.com"}, headers={"Accept": "application/json"})
        finally:
            await client.close()

    resp = asyncio.run(go())
    assert resp.status_code == 200
    assert resp.json() == [{"id": 1}]
    assert seen == {"ua": "exposure-scan", "accept": "application/json"}
    entry = ledger.entries[0]
    assert entry.destination_host == "crt.sh"
    assert entry.status == 200
    assert entry.bytes_in == len(resp.content)


def test_oversized_body_is_rejected_without_retry():
    ledger = NetworkLedger()
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, content=b"x" * 2048)

    client = HttpClient(retries=2, ledger=ledger, max_bytes_per_response=1024, transport=httpx.MockTransport(handler))
    with pytest.raises(ResponseTooLargeError):
        asyncio.run(client.get("https://crt.sh/"))
    assert len(calls) == 1
    assert ledger.entries[0].error


def test_transport_errors_are_retried_then_raised():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    client = HttpClient(retries=1, transport=httpx.MockTransport(handler))
    with pytest.raises(httpx.ConnectError):
        asyncio.run(client.get("https://haveibeenpwned.com/api/v3/breaches"))
    assert len(calls) == 2
