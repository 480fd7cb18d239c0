"""Named lookback periods and the lower time bound each one selects.

Every period spans 120 bars at its display resolution, so Half Day covers
12 hours and Day covers 24 hours.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class PeriodSpec:
    lookback_seconds: int
    display_resolution: int
    description: str


class TimePeriod(str, enum.Enum):
    HOUR = "hour"
    HALF_DAY = "half_day"
    DAY = "day"
    WEEK = "week"

    @property
    def spec(self) -> PeriodSpec:
        return PERIODS[self]

    @property
    def lookback_seconds(self) -> int:
        return self.spec.lookback_seconds

    @property
    def display_resolution(self) -> int:
        return self.spec.display_resolution

    @property
    def description(self) -> str:
        return self.spec.description

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, value: str) -> "TimePeriod":
        key = value.strip().lower().replace(" ", "_").replace("-", "_")
        for period in cls:
            if key in (period.value, period.name.lower()):
                return period
        raise ValueError(f"unknown time period: {value!r}")


HOUR = 3600

PERIODS: Dict[TimePeriod, PeriodSpec] = {
    TimePeriod.HOUR: PeriodSpec(HOUR, 30, "30 seconds"),
    TimePeriod.HALF_DAY: PeriodSpec(HOUR * 12, 360, "6 minutes"),
    TimePeriod.DAY: PeriodSpec(HOUR * 24, 720, "12 minutes"),
    TimePeriod.WEEK: PeriodSpec(HOUR * 24 * 7, 5040, "1.4 hours"),
}


def lower_bound(period: TimePeriod, now: int) -> int:
    return now - period.lookback_seconds
