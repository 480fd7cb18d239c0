import pytest
from queery.errors import StorageError
from queery.stores.memory_store import MemoryCounterStore
from queery.stores.redis_store import RedisCounterStore
from queery.stores.sql_store import SqlCounterStore

@pytest.fixture(params=["sql", "redis", "memory"])
def store(request, tmp_path):
    if request.param == "sql":
        s = SqlCounterStore(f"sqlite:///{tmp_path / 'counters.sqlite3'}")
    elif request.param == "redis":
        s = RedisCounterStore(request.getfixturevalue("fake_redis"))
    else:
        s = MemoryCounterStore()
    yield s
    s.close()

def test_negative_count_is_rejected(store):
    cid = store.create_counter(1, 0)
    with pytest.raises(StorageError):
        store.set_count(cid, -5)
    assert store.find_counter(1, 0).count == 1
    assert [c.count for c in store.scan_range(1)] == [1]

def test_set_count_zero_is_allowed(store):
    cid = store.create_counter(1, 30)
    store.set_count(cid, 0)
    assert store.find_counter(1, 30).count == 0

def test_increment_sequence_keeps_one_counter_per_bucket(store):
    assert store.increment(2, 60) == 1
    assert store.increment(2, 60) == 2
    store.increment(2, 90)
    assert [(c.bucket_start, c.count) for c in store.scan_range(2)] == [(60, 2), (90, 1)]
