"""Tests for the single-flight result cache."""
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from fastcc.commit_message import ResultCache


def test_concurrent_requests_compute_once():
    cache = ResultCache()
    calls = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def compute():
        with lock:
            calls.append(1)
        time.sleep(0.1)
        return "value"

    def worker():
        barrier.wait()
        return cache.get_or_compute("key", compute)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: worker(), range(8)))

    assert results == ["value"] * 8
    assert len(calls) == 1
    assert cache.misses == 1
    assert cache.hits == 7


def test_failed_computation_is_not_stored():
    cache = ResultCache()

    def explode():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("key", explode)

    assert "key" not in cache
    assert cache.get_or_compute("key", lambda: 42) == 42


def test_uncacheable_values_are_recomputed():
    cache = ResultCache()
    calls = []

    def compute():
        calls.append(1)
        return "temporary"

    cache.get_or_compute("key", compute, cacheable=lambda value: False)
    cache.get_or_compute("key", compute, cacheable=lambda value: False)

    assert len(calls) == 2
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted():
    cache = ResultCache(max_size=2)
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("b", lambda: 2)
    cache.get_or_compute("a", lambda: 0)
    cache.get_or_compute("c", lambda: 3)

    assert "a" in cache
    assert "b" not in cache
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_clear_resets_counters():
    cache = ResultCache()
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("a", lambda: 1)
    cache.clear()

    assert len(cache) == 0
    assert cache.hits == 0
    assert cache.misses == 0


def test_invalid_size():
    with pytest.raises(ValueError):
        ResultCache(max_size=0)


def test_waiter_gives_up_after_timeout():
    cache = ResultCache()
    started = threading.Event()

    def slow():
        started.set()
        time.sleep(0.5)
        return "late"

    with ThreadPoolExecutor(max_workers=1) as pool:
        leader = pool.submit(cache.get_or_compute, "key", slow)
        started.wait()

        begin = time.monotonic()
        with pytest.raises(TimeoutError):
            cache.get_or_compute("key", lambda: "waiter", timeout=0.05)
        assert time.monotonic() - begin < 0.4

        assert leader.result() == "late"
    assert cache.get("key") == "late"
