from __future__ import annotations
import threading
import uuid
from typing import Dict, List, Optional, Tuple
from queery.errors import StorageError
from queery.schemas import Counter
from queery.storage import MIN_TIMESTAMP, MAX_TIMESTAMP

class MemoryCounterStore:
    """Process-local counters. Used for local runs and tests."""

    def __init__(self):
        self.cells: Dict[Tuple[int, int], Counter] = {}
        self.key_by_id: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    def create_counter(self, stream_id: int, bucket_start: int) -> str:
        key = (stream_id, bucket_start)
        with self._lock:
            if key in self.cells:
                raise StorageError(f"counter for stream {stream_id} at {bucket_start} already exists")
            return self._insert(key)

    def _insert(self, key: Tuple[int, int]) -> str:
        counter_id = str(uuid.uuid4())
        self.cells[key] = Counter(id=counter_id, stream_id=key[0], bucket_start=key[1], count=1)
        self.key_by_id[counter_id] = key
        return counter_id

    def set_count(self, counter_id: str, new_count: int) -> None:
        if new_count < 0:
            raise StorageError(f"counter {counter_id} cannot be set to negative count {new_count}")
        with self._lock:
            key = self.key_by_id.get(counter_id)
            if key is None:
                raise StorageError(f"counter {counter_id} does not exist")
            self.cells[key] = self.cells[key].model_copy(update={"count": int(new_count)})

    def find_counter(self, stream_id: int, bucket_start: int) -> Optional[Counter]:
        with self._lock:
            c = self.cells.get((stream_id, bucket_start))
            return c.model_copy() if c else None

    def scan_range(self, stream_id: int, lower: int = MIN_TIMESTAMP, upper: int = MAX_TIMESTAMP) -> List[Counter]:
        with self._lock:
            rows = [c.model_copy() for (sid, ws), c in self.cells.items()
                    if sid == stream_id and lower <= ws <= upper]
        rows.sort(key=lambda c: c.bucket_start)
        return rows

    def increment(self, stream_id: int, bucket_start: int) -> int:
        key = (stream_id, bucket_start)
        with self._lock:
            cell = self.cells.get(key)
            if cell is None:
                self._insert(key)
                return 1
            cell.count += 1
            return cell.count

    def close(self) -> None:
        pass
