from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from sleep_charter.data_processing.schemas import EmptyEventStreamError, EventType, SleepRow, TimeEvent
from sleep_charter.data_processing.timeparse import TzLike, format_csv_timestamp, start_of_day

log = logging.getLogger(__name__)

CSV_HEADER = "Sleep,Wake"


def check_chronological(events: Sequence[TimeEvent]) -> List[int]:
    """Indices i where events[i] is earlier than events[i - 1]."""
    return [i for i in range(1, len(events)) if events[i].time < events[i - 1].time]


def fold_rows(events: Sequence[TimeEvent], tz: TzLike) -> List[SleepRow]:
    """
    Pairs each WAKE with the most recent SLEEP, in input order.

    Events are not re-sorted. If the stream opens with a WAKE (log starts
    mid-sleep), the first row's sleep is midnight of that day, written on the
    `tz` wall clock as 00:00:00. Every other field is written in UTC.
    """
    if not events:
        raise EmptyEventStreamError("Cannot build sleep rows from an empty event stream")

    sleep_time: Optional[str] = None
    if events[0].event_type is EventType.WAKE:
        sleep_time = format_csv_timestamp(start_of_day(events[0].time, tz), tz)

    rows: List[SleepRow] = []
    for event in events:
        if event.event_type is EventType.SLEEP:
            sleep_time = format_csv_timestamp(event.time)
        elif sleep_time is not None:
            rows.append(SleepRow(sleep=sleep_time, wake=format_csv_timestamp(event.time)))
    return rows


def render_csv(rows: Sequence[SleepRow]) -> str:
    # The header line always ends in a newline; rows are joined, none trailing.
    return CSV_HEADER + "\n" + "\n".join(f"{r.sleep},{r.wake}" for r in rows)


def fold_events(events: Sequence[TimeEvent], tz: TzLike) -> str:
    """Sleep/wake events -> CSV text: header, one row per WAKE, no trailing newline."""
    return render_csv(fold_rows(events, tz))


def write_sleep_csv(text: str, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    log.info("Wrote %s", path.as_posix())
    return path
