from __future__ import annotations
from typing import List, Optional, Protocol
from queery.config import Settings
from queery.schemas import Counter

# Full signed 64-bit range, for unbounded scans.
MIN_TIMESTAMP = -(2 ** 63)
MAX_TIMESTAMP = 2 ** 63 - 1

class CounterStore(Protocol):
    def create_counter(self, stream_id: int, bucket_start: int) -> str: ...
    def set_count(self, counter_id: str, new_count: int) -> None: ...
    def find_counter(self, stream_id: int, bucket_start: int) -> Optional[Counter]: ...
    def scan_range(self, stream_id: int, lower: int = MIN_TIMESTAMP, upper: int = MAX_TIMESTAMP) -> List[Counter]: ...
    def increment(self, stream_id: int, bucket_start: int) -> int: ...
    def close(self) -> None: ...

def open_store(s: Settings) -> CounterStore:
    backend = s.store_backend
    if backend in ("postgres", "sql"):
        from queery.stores.sql_store import SqlCounterStore
        return SqlCounterStore(s.database_url)
    if backend == "redis":
        from queery.stores.redis_store import RedisCounterStore
        return RedisCounterStore.from_url(s.redis_url)
    if backend == "memory":
        from queery.stores.memory_store import MemoryCounterStore
        return MemoryCounterStore()
    raise ValueError(f"unknown store backend: {backend}")
