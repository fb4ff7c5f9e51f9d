"""Tests for datamapper.cache.MemoryResultCache."""

from datamapper.cache import MemoryResultCache, ResultCache


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_implements_protocol():
    assert isinstance(MemoryResultCache(), ResultCache)


def test_miss_then_hit():
    cache = MemoryResultCache()
    assert cache.load("Order_abc") is None
    cache.save("Order_abc", [{"id": 1}], tags=["Order"])
    assert cache.load("Order_abc") == [{"id": 1}]


def test_empty_result_is_a_hit():
    cache = MemoryResultCache()
    cache.save("Order_empty", [])
    assert cache.load("Order_empty") == []


def test_clean_by_tag():
    cache = MemoryResultCache()
    cache.save("Order_a", [1], tags=["Order"])
    cache.save("Order_b", [2], tags=["Order", "open"])
    cache.save("Customer_a", [3], tags=["Customer"])
    cache.clean(["open"])
    assert cache.load("Order_a") == [1]
    assert cache.load("Order_b") is None
    cache.clean(["Order"])
    assert cache.load("Order_a") is None
    assert cache.load("Customer_a") == [3]
    assert len(cache) == 1


def test_expire():
    clock = _Clock()
    cache = MemoryResultCache(clock=clock)
    cache.save("Order_a", [1], expire=10)
    clock.now += 9
    assert cache.load("Order_a") == [1]
    clock.now += 2
    assert cache.load("Order_a") is None


def test_namespaces_do_not_mix():
    shared = MemoryResultCache(namespace="one")
    shared.save("k", "first")
    assert shared._entries == {"one:k": ("first", None)}
