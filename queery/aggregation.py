from __future__ import annotations
from typing import List, Sequence
from queery.schemas import Counter, MergedBucket

def merge(counters: Sequence[Counter], target_width: int) -> List[MergedBucket]:
    """Coarsen ascending counters into buckets at most ``target_width`` seconds wide.

    Each output bucket opens at the first counter that falls past the previous
    bucket's span, so boundaries follow the data rather than a fixed grid.
    Every input count lands in exactly one output bucket. Counters are never
    split, so a width narrower than the input spacing returns one bucket per
    counter.
    """
    if target_width <= 0:
        raise ValueError("target_width must be positive")
    if not counters:
        return []

    out: List[MergedBucket] = []
    current = MergedBucket(bucket_start=counters[0].bucket_start, bucket_width=target_width, count=0)
    next_threshold = current.bucket_start + target_width

    for c in counters:
        if c.bucket_start < next_threshold:
            current.count += c.count
            continue
        out.append(current)
        current = MergedBucket(bucket_start=c.bucket_start, bucket_width=target_width, count=c.count)
        next_threshold = c.bucket_start + target_width

    out.append(current)
    return out
