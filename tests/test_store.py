from concurrent.futures import ThreadPoolExecutor

import pytest

from addonmeta.store import Store, ThreadSafeStore


def test_thread_safe_store_is_a_store_and_round_trips():
    store = ThreadSafeStore()
    assert isinstance(store, Store)
    store.write("key", {"value": 1})
    assert store.read("key") == {"value": 1}


def test_concurrent_writes_and_reads():
    num_workers = 10
    store = ThreadSafeStore()

    def work(i):
        store.write(i, i)
        return store.read(i)

    with ThreadPoolExecutor(max_workers=num_workers) as pool:
        results = list(pool.map(work, range(num_workers)))

    assert results == list(range(num_workers))
    assert [store.read(i) for i in range(num_workers)] == list(range(num_workers))


def test_missing_key_raises_key_error():
    store = ThreadSafeStore()
    with pytest.raises(KeyError):
        store.read("absent")


def test_write_replaces_existing_value():
    store = ThreadSafeStore()
    store.write("k", "first")
    store.write("k", "second")
    assert store.read("k") == "second"