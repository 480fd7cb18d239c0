from __future__ import annotations
import asyncio
import logging
from typing import List
from queery.aggregation import merge
from queery.errors import EmptyInputError
from queery.periods import TimePeriod, lower_bound
from queery.plotting import render
from queery.schemas import MergedBucket
from queery.storage import CounterStore

logger = logging.getLogger(__name__)

class ChartService:
    def __init__(self, store: CounterStore, resolution: int):
        self.store = store
        self.resolution = resolution

    def fetch(self, stream_id: int, period: TimePeriod, now: int) -> List[MergedBucket]:
        counters = self.store.scan_range(stream_id, lower_bound(period, now), now)
        return merge(counters, max(period.display_resolution, self.resolution))

    def build_chart(self, stream_id: int, period: TimePeriod, now: int, label: str) -> bytes:
        buckets = self.fetch(stream_id, period, now)
        if not buckets:
            logger.info("No counters for stream %s in the last %s", stream_id, period.label)
            raise EmptyInputError(f"no messages logged in the last {period.label.lower()}")
        return render(buckets, label, lower_bound(period, now), now, period.description, resolution=self.resolution)

    async def render_chart(self, stream_id: int, period: TimePeriod, now: int, label: str) -> bytes:
        return await asyncio.to_thread(self.build_chart, stream_id, period, now, label)
