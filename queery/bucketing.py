from __future__ import annotations
from typing import Tuple
from datetime import datetime, timezone, timedelta

def bucket_of(timestamp: int, resolution: int) -> int:
    """Start of the ``resolution``-wide bucket containing ``timestamp`` (UNIX seconds)."""
    if resolution <= 0:
        raise ValueError("resolution must be positive")
    # Python's % is non-negative for a positive divisor.
    return timestamp - (timestamp % resolution)

def bucket_bounds(ts: datetime, resolution: int) -> Tuple[datetime, datetime]:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    start_epoch = bucket_of(int(ts.timestamp()), resolution)
    start = datetime.fromtimestamp(start_epoch, tz=timezone.utc)
    end = start + timedelta(seconds=resolution)
    return start, end
