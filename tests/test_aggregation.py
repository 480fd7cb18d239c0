import random
import pytest
from queery.aggregation import merge
from queery.schemas import Counter

def _counters(pairs):
    return [Counter(id=f"c{i}", stream_id=1, bucket_start=t, count=c) for i, (t, c) in enumerate(pairs)]

def test_merge_folds_everything_into_one_wide_bucket():
    out = merge(_counters([(0, 2), (30, 3), (60, 1)]), 90)
    assert [(b.bucket_start, b.count, b.bucket_width) for b in out] == [(0, 6, 90)]

def test_merge_at_base_resolution_is_passthrough():
    src = _counters([(0, 2), (30, 3), (60, 1)])
    out = merge(src, 30)
    assert [(b.bucket_start, b.count) for b in out] == [(0, 2), (30, 3), (60, 1)]

def test_merge_empty_input():
    assert merge([], 90) == []

def test_merge_single_counter():
    out = merge(_counters([(120, 4)]), 3600)
    assert [(b.bucket_start, b.count) for b in out] == [(120, 4)]

def test_merge_narrow_width_never_splits():
    out = merge(_counters([(0, 1), (60, 2), (300, 3)]), 10)
    assert [(b.bucket_start, b.count) for b in out] == [(0, 1), (60, 2), (300, 3)]

def test_merge_anchors_buckets_on_data():
    # Gap after 30: the next bucket opens at 150, not on a 90s grid.
    out = merge(_counters([(0, 1), (30, 1), (150, 5), (210, 2), (240, 1)]), 90)
    assert [(b.bucket_start, b.count) for b in out] == [(0, 2), (150, 7), (240, 1)]

def test_merge_keeps_trailing_partial_bucket():
    out = merge(_counters([(0, 1), (30, 1), (60, 1), (90, 9)]), 90)
    assert out[-1].bucket_start == 90
    assert out[-1].count == 9

def test_merge_properties_on_random_input():
    rng = random.Random(7)
    for _ in range(50):
        starts = sorted(rng.sample(range(0, 30 * 500, 30), rng.randint(1, 60)))
        src = _counters([(t, rng.randint(0, 20)) for t in starts])
        width = 30 * rng.randint(1, 40)
        out = merge(src, width)
        assert sum(b.count for b in out) == sum(c.count for c in src)
        out_starts = [b.bucket_start for b in out]
        assert out_starts == sorted(set(out_starts))
        assert set(out_starts) <= set(starts)

def test_merge_rejects_non_positive_width():
    with pytest.raises(ValueError):
        merge(_counters([(0, 1)]), 0)
