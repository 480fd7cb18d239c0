from __future__ import annotations
import time
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, HTTPException, Query, Response
from queery.bucketing import bucket_bounds
from queery.errors import EmptyInputError, RenderError, StorageError
from queery.ingest import Ingestor
from queery.periods import TimePeriod
from queery.query import ChartService
from queery.storage import CounterStore, MIN_TIMESTAMP, MAX_TIMESTAMP

def _parse_ts(s: Optional[str], default: int) -> int:
    if s is None:
        return default
    if s.lstrip("-").isdigit():
        return int(s)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"invalid timestamp: {s}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())

def create_app(store: CounterStore, resolution: int) -> FastAPI:
    app = FastAPI(title="Queery Message Counter API", version="1.0.0")
    ingestor = Ingestor(store, resolution)
    charts = ChartService(store, resolution)

    @app.get("/health")
    def health():
        return {"ok": True, "resolution_seconds": resolution}

    @app.get("/v1/streams/{stream_id}/chart")
    def chart(stream_id: int, period: str = Query("hour"), label: Optional[str] = Query(None)):
        try:
            tp = TimePeriod.parse(period)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        try:
            png = charts.build_chart(stream_id, tp, int(time.time()), label or str(stream_id))
        except EmptyInputError:
            raise HTTPException(status_code=404, detail="no data")
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        except RenderError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        return Response(content=png, media_type="image/png")

    @app.get("/v1/streams/{stream_id}/counters")
    def counters(stream_id: int, from_ts: Optional[str] = Query(None), to_ts: Optional[str] = Query(None)):
        lower = _parse_ts(from_ts, MIN_TIMESTAMP)
        upper = _parse_ts(to_ts, MAX_TIMESTAMP)
        try:
            rows = store.scan_range(stream_id, lower, upper)
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        return {"stream_id": stream_id, "resolution_seconds": resolution, "rows": [r.model_dump() for r in rows]}

    @app.post("/v1/streams/{stream_id}/events")
    def record_event(stream_id: int, ts: Optional[str] = Query(None)):
        timestamp = _parse_ts(ts, int(time.time()))
        try:
            count = ingestor.record(stream_id, timestamp)
        except StorageError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        start, end = bucket_bounds(datetime.fromtimestamp(timestamp, tz=timezone.utc), resolution)
        return {
            "stream_id": stream_id,
            "bucket_start": int(start.timestamp()),
            "window_start": start.isoformat(),
            "window_end": end.isoformat(),
            "count": count,
        }

    return app
