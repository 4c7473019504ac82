import pytest

from exposure_scan.utils import cache as cache_mod
from exposure_scan.utils.cache import FileCache, SqliteCache, build_cache


@pytest.mark.parametrize("mode", ["sqlite", "files"])
def test_round_trip(tmp_path, mode):
    store = build_cache(mode, str(tmp_path))
    assert store.get("breach_catalog") is None
    store.set("breach_catalog", {"breaches": [{"Name": "Example"}]})
    assert store.get("breach_catalog") == {"breaches": [{"Name": "Example"}]}


def test_none_mode_disables_cache(tmp_path):
    assert build_cache("none", str(tmp_path)) is None


def test_sqlite_entries_expire(tmp_path, monkeypatch):
    store = SqliteCache(str(tmp_path / "cache.db"), ttl_seconds=60)
    monkeypatch.setattr(cache_mod.time, "time", lambda: 1_000.0)
    store.set("k", {"v": 1})
    monkeypatch.setattr(cache_mod.time, "time", lambda: 1_059.0)
    assert store.get("k") == {"v": 1}
    monkeypatch.setattr(cache_mod.time, "time", lambda: 1_061.0)
    assert store.get("k") is None


def test_file_entries_expire(tmp_path, monkeypatch):
    store = FileCache(str(tmp_path / "cache"), ttl_seconds=60)
    store.set("k", {"v": 1})
    assert store.get("k") == {"v": 1}
    real_time = cache_mod.time.time()
    monkeypatch.setattr(cache_mod.time, "time", lambda: real_time + 120)
    assert store.get("k") is None
