from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Tuple

import pandas as pd


class EventType(str, Enum):
    SLEEP = "SLEEP"
    WAKE = "WAKE"

    def flipped(self) -> "EventType":
        return EventType.WAKE if self is EventType.SLEEP else EventType.SLEEP


@dataclass(frozen=True)
class TimeEvent:
    event_type: EventType
    # tz-aware, always UTC
    time: pd.Timestamp


@dataclass(frozen=True)
class Day:
    date: date
    values: Tuple[TimeEvent, ...] = field(default_factory=tuple)


# One CSV line; both ends already rendered as dd/MM/yyyy HH:mm:ss (UTC)
@dataclass(frozen=True)
class SleepRow:
    sleep: str
    wake: str


class ColumnParseError(ValueError):
    """A date or time cell in one sheet column could not be parsed."""

    def __init__(self, message: str, value: str, column_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.value = value
        self.column_index = column_index


class EmptyEventStreamError(ValueError):
    """Raised when folding is asked to build rows from zero events."""
