from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional
from queery.bucketing import bucket_of
from queery.errors import StorageError
from queery.schemas import MessageEvent
from queery.storage import CounterStore

logger = logging.getLogger(__name__)

MessageFilter = Callable[[MessageEvent], bool]

def count_everything(_evt: MessageEvent) -> bool:
    return True

def exclude_authors(*author_ids: int, ignore_bots: bool = False) -> MessageFilter:
    """Predicate rejecting messages from ``author_ids`` (and any bot, if asked)."""
    excluded = frozenset(int(a) for a in author_ids)

    def should_count(evt: MessageEvent) -> bool:
        if evt.author_id in excluded:
            return False
        if ignore_bots and evt.author_is_bot:
            return False
        return True

    return should_count

class Ingestor:
    def __init__(self, store: CounterStore, resolution: int, should_count: MessageFilter = count_everything):
        if resolution <= 0:
            raise ValueError("resolution must be positive")
        self.store = store
        self.resolution = resolution
        self.should_count = should_count

    def record(self, stream_id: int, timestamp: int) -> int:
        """Count one message; returns the bucket's new count."""
        bucket_start = bucket_of(timestamp, self.resolution)
        return self.store.increment(stream_id, bucket_start)

    async def handle(self, evt: MessageEvent) -> Optional[int]:
        if not self.should_count(evt):
            return None
        try:
            return await asyncio.to_thread(self.record, evt.stream_id, evt.timestamp)
        except StorageError:
            # Dropped increments are not retried.
            logger.exception("Failed to count message in stream %s", evt.stream_id)
            return None
