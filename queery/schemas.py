from __future__ import annotations
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator

class Counter(BaseModel):
    id: str
    stream_id: int
    bucket_start: int
    count: int = Field(ge=0)

class MergedBucket(BaseModel):
    bucket_start: int
    bucket_width: int
    count: int = Field(ge=0)

class MessageEvent(BaseModel):
    stream_id: int
    author_id: int
    author_is_bot: bool = False
    ts: datetime

    @field_validator("ts")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v

    @property
    def timestamp(self) -> int:
        return int(self.ts.timestamp())
