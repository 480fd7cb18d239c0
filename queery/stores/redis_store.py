from __future__ import annotations
import logging
from typing import List, Optional, Tuple
import redis
from queery.errors import StorageError
from queery.schemas import Counter
from queery.storage import MIN_TIMESTAMP, MAX_TIMESTAMP

logger = logging.getLogger(__name__)

def _key(stream_id: int) -> str:
    return f"queery:counters:{stream_id}"

def _counter_id(stream_id: int, bucket_start: int) -> str:
    return f"{stream_id}:{bucket_start}"

def _parse_id(counter_id: str) -> Tuple[int, int]:
    try:
        stream_id, bucket_start = counter_id.split(":")
        return int(stream_id), int(bucket_start)
    except ValueError as exc:
        raise StorageError(f"malformed counter id: {counter_id!r}") from exc

class RedisCounterStore:
    """One hash per stream, bucket_start -> count. Ids are ``stream:bucket``."""

    def __init__(self, client: redis.Redis):
        self.r = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def create_counter(self, stream_id: int, bucket_start: int) -> str:
        try:
            created = self.r.hsetnx(_key(stream_id), str(bucket_start), 1)
        except redis.RedisError as exc:
            raise StorageError(f"could not create counter for stream {stream_id} at {bucket_start}: {exc}") from exc
        if not created:
            raise StorageError(f"counter for stream {stream_id} at {bucket_start} already exists")
        logger.info("New counter created for stream %s at %s", stream_id, bucket_start)
        return _counter_id(stream_id, bucket_start)

    def set_count(self, counter_id: str, new_count: int) -> None:
        if new_count < 0:
            raise StorageError(f"counter {counter_id} cannot be set to negative count {new_count}")
        stream_id, bucket_start = _parse_id(counter_id)
        key, field = _key(stream_id), str(bucket_start)
        try:
            if not self.r.hexists(key, field):
                raise StorageError(f"counter {counter_id} does not exist")
            self.r.hset(key, field, int(new_count))
        except redis.RedisError as exc:
            raise StorageError(f"could not update counter {counter_id}: {exc}") from exc
        logger.debug("Counter %s updated to %s", counter_id, new_count)

    def find_counter(self, stream_id: int, bucket_start: int) -> Optional[Counter]:
        try:
            raw = self.r.hget(_key(stream_id), str(bucket_start))
        except redis.RedisError as exc:
            raise StorageError(f"could not read counter for stream {stream_id} at {bucket_start}: {exc}") from exc
        if raw is None:
            return None
        return Counter(id=_counter_id(stream_id, bucket_start), stream_id=stream_id,
                       bucket_start=bucket_start, count=int(raw))

    def scan_range(self, stream_id: int, lower: int = MIN_TIMESTAMP, upper: int = MAX_TIMESTAMP) -> List[Counter]:
        try:
            d = self.r.hgetall(_key(stream_id))
        except redis.RedisError as exc:
            raise StorageError(f"could not scan counters for stream {stream_id}: {exc}") from exc
        out = []
        for field, raw in d.items():
            bucket_start = int(field)
            if lower <= bucket_start <= upper:
                out.append(Counter(id=_counter_id(stream_id, bucket_start), stream_id=stream_id,
                                   bucket_start=bucket_start, count=int(raw)))
        out.sort(key=lambda c: c.bucket_start)
        return out

    def increment(self, stream_id: int, bucket_start: int) -> int:
        try:
            return int(self.r.hincrby(_key(stream_id), str(bucket_start), 1))
        except redis.RedisError as exc:
            raise StorageError(f"could not increment counter for stream {stream_id} at {bucket_start}: {exc}") from exc

    def close(self) -> None:
        self.r.close()
