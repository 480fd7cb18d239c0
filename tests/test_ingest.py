import asyncio
from datetime import datetime, timezone
import pytest
from queery.errors import StorageError
from queery.ingest import Ingestor, exclude_authors
from queery.schemas import MessageEvent
from queery.stores.memory_store import MemoryCounterStore

BOT_ID = 848902037957115916

def _evt(author_id=1, ts=datetime(2026, 2, 7, 12, 0, 59, tzinfo=timezone.utc), stream_id=100, is_bot=False):
    return MessageEvent(stream_id=stream_id, author_id=author_id, author_is_bot=is_bot, ts=ts)

class BrokenStore(MemoryCounterStore):
    def increment(self, stream_id, bucket_start):
        raise StorageError("database unavailable")

def test_record_buckets_then_increments():
    st = MemoryCounterStore()
    ing = Ingestor(st, 30)
    assert ing.record(100, 1698569658) == 1
    assert ing.record(100, 1698569641) == 2
    assert ing.record(100, 1698569670) == 1
    assert [(c.bucket_start, c.count) for c in st.scan_range(100)] == [(1698569640, 2), (1698569670, 1)]

def test_exclude_authors_predicate():
    pred = exclude_authors(BOT_ID)
    assert pred(_evt(author_id=1))
    assert not pred(_evt(author_id=BOT_ID))
    assert pred(_evt(author_id=2, is_bot=True))
    assert not exclude_authors(BOT_ID, ignore_bots=True)(_evt(author_id=2, is_bot=True))

async def test_handle_skips_own_messages():
    st = MemoryCounterStore()
    ing = Ingestor(st, 30, exclude_authors(BOT_ID))
    assert await ing.handle(_evt(author_id=BOT_ID)) is None
    assert await ing.handle(_evt(author_id=1)) == 1
    assert await ing.handle(_evt(author_id=2)) == 2
    assert len(st.scan_range(100)) == 1

async def test_handle_swallows_storage_errors(caplog):
    ing = Ingestor(BrokenStore(), 30)
    assert await ing.handle(_evt()) is None
    assert "Failed to count message" in caplog.text

async def test_concurrent_handles_do_not_lose_updates():
    st = MemoryCounterStore()
    ing = Ingestor(st, 30)
    results = await asyncio.gather(*(ing.handle(_evt(author_id=i)) for i in range(50)))
    assert sorted(results) == list(range(1, 51))
    assert st.find_counter(100, 1770465630).count == 50

def test_naive_timestamps_are_utc():
    evt = _evt(ts=datetime(2026, 2, 7, 12, 0, 59))
    assert evt.timestamp == 1770465659

def test_rejects_bad_resolution():
    with pytest.raises(ValueError):
        Ingestor(MemoryCounterStore(), 0)
