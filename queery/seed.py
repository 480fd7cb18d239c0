from __future__ import annotations
import logging
import random
import time
from typing import Dict, List, Optional
from queery.ingest import Ingestor

logger = logging.getLogger(__name__)

def seed_messages(ingestor: Ingestor, stream_ids: List[int], messages: int, lookback_seconds: int,
                  hot_stream_prob: float = 0.2, now: Optional[int] = None, rng: Optional[random.Random] = None) -> Dict[int, int]:
    """Write ``messages`` synthetic messages spread over the last ``lookback_seconds``.

    With probability ``hot_stream_prob`` a message goes to the first stream,
    otherwise to a random one. Returns messages written per stream.
    """
    if not stream_ids:
        raise ValueError("at least one stream id is required")
    rng = rng or random.Random()
    now = int(time.time()) if now is None else now
    hot = stream_ids[0]

    written: Dict[int, int] = {sid: 0 for sid in stream_ids}
    for _ in range(messages):
        sid = hot if rng.random() < hot_stream_prob else stream_ids[rng.randint(0, len(stream_ids)-1)]
        ts = now - rng.randint(0, max(0, lookback_seconds))
        ingestor.record(sid, ts)
        written[sid] += 1

    logger.info("Seeded %d messages across %d streams", messages, len(stream_ids))
    return written
