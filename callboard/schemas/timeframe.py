from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel


class Timeframe(StrEnum):
    today = "today"
    week = "week"
    month = "month"
    custom = "custom"


class TimeframeSelector(BaseModel):
    timeframe: Timeframe
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def today(cls) -> "TimeframeSelector":
        return cls(timeframe=Timeframe.today)

    @classmethod
    def week(cls) -> "TimeframeSelector":
        return cls(timeframe=Timeframe.week)

    @classmethod
    def month(cls) -> "TimeframeSelector":
        return cls(timeframe=Timeframe.month)

    @classmethod
    def custom(cls, start_date: date | None, end_date: date | None) -> "TimeframeSelector":
        return cls(timeframe=Timeframe.custom, start_date=start_date, end_date=end_date)

    @property
    def is_complete(self) -> bool:
        if self.timeframe != Timeframe.custom:
            return True
        return self.start_date is not None and self.end_date is not None


class DraftRange(BaseModel):
    start_date: date | None = None
    end_date: date | None = None


class TimeWindow(BaseModel):
    """Inclusive [start, end] pair of UTC instants."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end
