import threading
import pytest
from queery.errors import StorageError
from queery.stores.memory_store import MemoryCounterStore

def test_increment_and_scan():
    st = MemoryCounterStore()
    st.increment(1, 0)
    st.increment(1, 0)
    st.increment(1, 30)
    st.increment(2, 0)

    rows = st.scan_range(1)
    assert [(r.bucket_start, r.count) for r in rows] == [(0, 2), (30, 1)]
    assert [(r.bucket_start, r.count) for r in st.scan_range(1, 10, 40)] == [(30, 1)]

def test_create_set_find():
    st = MemoryCounterStore()
    cid = st.create_counter(3, 60)
    with pytest.raises(StorageError):
        st.create_counter(3, 60)
    st.set_count(cid, 5)
    assert st.find_counter(3, 60).count == 5
    with pytest.raises(StorageError):
        st.set_count("nope", 1)

def test_find_returns_a_copy():
    st = MemoryCounterStore()
    st.increment(1, 0)
    c = st.find_counter(1, 0)
    c.count = 100
    assert st.find_counter(1, 0).count == 1

def test_threaded_increments():
    st = MemoryCounterStore()

    def bump():
        for _ in range(500):
            st.increment(1, 0)

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert st.find_counter(1, 0).count == 4000
    assert len(st.cells) == 1
