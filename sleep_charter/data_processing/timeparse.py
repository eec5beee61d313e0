from __future__ import annotations

import logging
import os
from datetime import date, datetime, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd
from dateutil import tz as dateutil_tz

log = logging.getLogger(__name__)

TzLike = Union[str, tzinfo]

SHEET_DATE_FORMAT = "%d/%m/%y"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")
CSV_DATETIME_FORMAT = "%d/%m/%Y %H:%M:%S"


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Turns a configured zone name into a tzinfo.

    None, "" and "local" mean the process zone: $TZ when it names an IANA zone,
    otherwise the C library's local zone (POSIX $TZ rules or the system zone),
    which keeps its DST transitions.
    """
    if name is None or not str(name).strip() or str(name).strip().lower() == "local":
        env_tz = os.environ.get("TZ", "").strip()
        if env_tz:
            try:
                return ZoneInfo(env_tz.lstrip(":"))
            except (ZoneInfoNotFoundError, ValueError):
                log.debug("TZ=%s is not an IANA zone name; using the C library local zone.", env_tz)
        return dateutil_tz.tzlocal()

    try:
        return ZoneInfo(str(name).strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def parse_sheet_date(s: str) -> date:
    try:
        return datetime.strptime(s, SHEET_DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not parse date {s!r} (expected dd/mm/yy)") from e


def _localize(wall_clock: datetime, tz: TzLike) -> pd.Timestamp:
    # Ambiguous wall-clock (DST fall-back) resolves to the first occurrence,
    # nonexistent wall-clock (spring-forward gap) shifts forward.
    return pd.Timestamp(wall_clock).tz_localize(tz, ambiguous=True, nonexistent="shift_forward")


def parse_time_of_day(s: str, on_date: date, tz: TzLike) -> pd.Timestamp:
    """
    Parses "HH:mm" (falling back to "HH:mm:ss") as a wall-clock time on `on_date`
    in zone `tz`, returning the UTC instant.
    """
    for fmt in TIME_FORMATS:
        try:
            t = datetime.strptime(s, fmt).time()
        except (TypeError, ValueError):
            continue
        return _localize(datetime.combine(on_date, t), tz).tz_convert("UTC")
    raise ValueError(f"Could not parse time {s!r} (expected HH:mm or HH:mm:ss)")


def start_of_day(ts: pd.Timestamp, tz: TzLike) -> pd.Timestamp:
    """Local midnight (in `tz`) of the calendar day containing `ts`, as UTC."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    local_day = ts.tz_convert(tz).date()
    return _localize(datetime.combine(local_day, datetime.min.time()), tz).tz_convert("UTC")


def format_csv_timestamp(ts: pd.Timestamp, tz: TzLike = "UTC") -> str:
    """dd/mm/yyyy HH:MM:SS on the `tz` wall clock (UTC unless told otherwise)."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(tz).strftime(CSV_DATETIME_FORMAT)
