from __future__ import annotations
import logging
import uuid
from typing import List, Optional
from sqlalchemy import create_engine, Column, String, BigInteger, Integer, CheckConstraint, UniqueConstraint, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase
from queery.errors import StorageError
from queery.schemas import Counter
from queery.storage import MIN_TIMESTAMP, MAX_TIMESTAMP

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

class CounterRow(Base):
    __tablename__ = "counters"
    id = Column(String(36), primary_key=True)
    stream_id = Column(BigInteger, nullable=False)
    bucket_start = Column(BigInteger, nullable=False)
    count = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("stream_id", "bucket_start", name="uq_counters_stream_bucket"),
        CheckConstraint("count >= 0", name="ck_counters_count_nonnegative"),
    )

_COLUMNS = "id, stream_id, bucket_start, count"

def _to_counter(row) -> Counter:
    return Counter(id=row["id"], stream_id=row["stream_id"], bucket_start=row["bucket_start"], count=row["count"])

class SqlCounterStore:
    """Counter rows in a SQL database (Postgres in production, SQLite works too)."""

    def __init__(self, url: str):
        try:
            self.engine = create_engine(url, pool_pre_ping=True)
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"could not open counter store: {exc}") from exc

    def create_counter(self, stream_id: int, bucket_start: int) -> str:
        counter_id = str(uuid.uuid4())
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                INSERT INTO counters(id, stream_id, bucket_start, count)
                VALUES (:id, :stream_id, :bucket_start, 1);
                """), {"id": counter_id, "stream_id": stream_id, "bucket_start": bucket_start})
        except SQLAlchemyError as exc:
            raise StorageError(f"could not create counter for stream {stream_id} at {bucket_start}: {exc}") from exc
        logger.info("New counter created for stream %s at %s", stream_id, bucket_start)
        return counter_id

    def set_count(self, counter_id: str, new_count: int) -> None:
        try:
            with self.engine.begin() as conn:
                res = conn.execute(text("UPDATE counters SET count = :count WHERE id = :id;"),
                                   {"count": new_count, "id": counter_id})
        except SQLAlchemyError as exc:
            raise StorageError(f"could not update counter {counter_id}: {exc}") from exc
        if res.rowcount == 0:
            raise StorageError(f"counter {counter_id} does not exist")
        logger.debug("Counter %s updated to %s", counter_id, new_count)

    def find_counter(self, stream_id: int, bucket_start: int) -> Optional[Counter]:
        sql = text(f"""
        SELECT {_COLUMNS}
        FROM counters
        WHERE stream_id = :stream_id
          AND bucket_start = :bucket_start;
        """)
        try:
            with self.engine.begin() as conn:
                row = conn.execute(sql, {"stream_id": stream_id, "bucket_start": bucket_start}).mappings().first()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not read counter for stream {stream_id} at {bucket_start}: {exc}") from exc
        return _to_counter(row) if row else None

    def scan_range(self, stream_id: int, lower: int = MIN_TIMESTAMP, upper: int = MAX_TIMESTAMP) -> List[Counter]:
        sql = text(f"""
        SELECT {_COLUMNS}
        FROM counters
        WHERE stream_id = :stream_id
          AND bucket_start BETWEEN :lower AND :upper
        ORDER BY bucket_start ASC;
        """)
        try:
            with self.engine.begin() as conn:
                rows = conn.execute(sql, {"stream_id": stream_id, "lower": lower, "upper": upper}).mappings().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not scan counters for stream {stream_id}: {exc}") from exc
        logger.debug("Fetched %d counters for stream %s between %s and %s", len(rows), stream_id, lower, upper)
        return [_to_counter(r) for r in rows]

    def increment(self, stream_id: int, bucket_start: int) -> int:
        try:
            with self.engine.begin() as conn:
                count = conn.execute(text("""
                INSERT INTO counters(id, stream_id, bucket_start, count)
                VALUES (:id, :stream_id, :bucket_start, 1)
                ON CONFLICT (stream_id, bucket_start)
                DO UPDATE SET count = counters.count + 1
                RETURNING count;
                """), {"id": str(uuid.uuid4()), "stream_id": stream_id, "bucket_start": bucket_start}).scalar_one()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not increment counter for stream {stream_id} at {bucket_start}: {exc}") from exc
        logger.debug("Stream %s bucket %s now at %s", stream_id, bucket_start, count)
        return int(count)

    def close(self) -> None:
        self.engine.dispose()
