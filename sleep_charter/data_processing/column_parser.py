from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from tqdm import tqdm

from sleep_charter.data_processing.schemas import ColumnParseError, Day, EventType, TimeEvent
from sleep_charter.data_processing.timeparse import TzLike, parse_sheet_date, parse_time_of_day

log = logging.getLogger(__name__)

# Midnight marks a rollover: the next logged time is a wake-up.
MIDNIGHT_CELLS = frozenset({"00:00", "00:00:00"})
# End-of-day filler, never an event.
END_OF_DAY_CELLS = frozenset({"23:59", "23:59:00"})


def has_data(column: Sequence[str]) -> bool:
    return bool(column) and bool(column[0])


def _time_cells(column: Sequence[str]) -> List[str]:
    """Cells after the date header, up to (not including) the first blank."""
    cells = list(column[1:])
    try:
        return cells[: cells.index("")]
    except ValueError:
        return cells


def parse_column(column: Sequence[str], tz: TzLike, column_index: Optional[int] = None) -> Day:
    """
    Parses one sheet column into a Day.

    column[0] is the date (dd/mm/yy), the rest are clock times logged in order,
    alternating sleep and wake. The first blank cell ends the column.
    """
    if not has_data(column):
        raise ColumnParseError("Column has no date header", value="", column_index=column_index)

    try:
        day = parse_sheet_date(column[0])
    except ValueError as e:
        raise ColumnParseError(str(e), value=column[0], column_index=column_index) from e

    event_type = EventType.SLEEP
    last_value: Optional[str] = None
    events: List[TimeEvent] = []

    for cell in _time_cells(column):
        if cell in MIDNIGHT_CELLS:
            event_type = EventType.WAKE
            continue
        if cell in END_OF_DAY_CELLS:
            continue
        if cell == last_value:
            continue

        try:
            ts = parse_time_of_day(cell, day, tz)
        except ValueError as e:
            raise ColumnParseError(f"{e} in column dated {column[0]}", value=cell, column_index=column_index) from e

        events.append(TimeEvent(event_type=event_type, time=ts))
        last_value = cell
        event_type = event_type.flipped()

    return Day(date=day, values=tuple(events))


def parse_columns(
    grid: Iterable[Sequence[str]],
    tz: TzLike,
    *,
    skip_invalid: bool = False,
    progress: bool = False,
) -> List[Day]:
    """
    Parses every data-bearing column of a column-major grid, keeping column order.

    With skip_invalid=True a column that fails to parse is logged and dropped;
    otherwise the first failure propagates.
    """
    columns = list(grid)
    days: List[Day] = []
    for idx, column in enumerate(tqdm(columns, desc="Parsing columns", disable=not progress)):
        if not has_data(column):
            continue
        try:
            days.append(parse_column(column, tz, column_index=idx))
        except ColumnParseError as e:
            if not skip_invalid:
                raise
            log.warning("Skipping column %d (%r): %s", idx, e.value, e)
    return days


def flatten_events(days: Iterable[Day]) -> List[TimeEvent]:
    return [event for day in days for event in day.values]
