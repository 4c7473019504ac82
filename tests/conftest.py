import pytest


class FakeResolver:
    def __init__(self, records=None, failing=()):
        self.records = {(name, rtype): list(values) for (name, rtype), values in (records or {}).items()}
        self.failing = set(failing)
        self.calls = []
        self.closed = False

    async def resolve(self, name, record_type):
        self.calls.append((name, record_type))
        if name in self.failing:
            raise RuntimeError(f"resolver exploded on {name}")
        return list(self.records.get((name, record_type), []))

    async def close(self):
        self.closed = True


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttp:
    """Routes GETs by URL prefix; an Exception value is raised instead of returned."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    async def get(self, url, params=None, headers=None, **kwargs):
        self.calls.append((url, params))
        for prefix, value in self.routes.items():
            if url.startswith(prefix):
                if isinstance(value, Exception):
                    raise value
                return value
        raise ConnectionError(f"no route for {url}")

    async def close(self):
        pass


@pytest.fixture
def fake_resolver():
    return FakeResolver


@pytest.fixture
def fake_http():
    return FakeHttp


@pytest.fixture
def fake_response():
    return FakeResponse
