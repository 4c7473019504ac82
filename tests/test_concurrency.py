import asyncio

from exposure_scan.utils.concurrency import gather_settled, probe_in_batches


def test_gather_settled_keeps_failures_in_place():
    async def ok(v):
        return v

    async def bad():
        raise RuntimeError("nope")

    results = asyncio.run(gather_settled([ok(1), bad(), ok(3)]))
    assert results[0] == 1
    assert isinstance(results[1], RuntimeError)
    assert results[2] == 3


def test_batches_keep_order_and_drop_misses():
    active = []
    peak = []

    async def probe(n):
        active.append(n)
        peak.append(len(active))
        await asyncio.sleep(0.01 * (5 - n % 5))
        active.remove(n)
        if n == 4:
            raise RuntimeError("probe failed")
        return n * 10 if n % 2 == 0 else None

    results = asyncio.run(probe_in_batches(list(range(10)), probe, batch_size=3))
    assert results == [0, 20, 60, 80]
    assert max(peak) <= 3


def test_zero_batch_size_still_progresses():
    async def probe(n):
        return n

    assert asyncio.run(probe_in_batches([1, 2], probe, batch_size=0)) == [1, 2]
