from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple, Union

import pandas as pd

from sleep_charter.data_processing.csv_builder import CSV_HEADER

# Google Sheets default date/time rendering: DD/MM/YYYY HH:mm:ss
# Groups: day, month, year, hour, minute, second.
DATETIME_RE = re.compile(r"(\d{2}).(\d{2}).(\d{4}) (\d{2}):(\d{2}):(\d{2})")


def parse_csv_timestamp(s: str) -> pd.Timestamp:
    m = DATETIME_RE.match(s)
    if not m:
        raise ValueError(f"Date/time failed to parse: {s!r}")
    day, month, year, hour, minute, second = (int(g) for g in m.groups())
    return pd.Timestamp(year=year, month=month, day=day, hour=hour, minute=minute, second=second, tz="UTC")


def _parse_line(line: str) -> Tuple[pd.Timestamp, pd.Timestamp]:
    ends = line.split(",")
    if len(ends) < 2:
        raise ValueError(f"Expected 'sleep,wake' but got: {line!r}")
    begin = parse_csv_timestamp(ends[0])
    end = parse_csv_timestamp(ends[1])
    if end <= begin:
        raise ValueError(f"End time is before begin time: {line!r}")
    return begin, end


def parse_sleep_csv(text: str) -> pd.DataFrame:
    """
    Reads CSV text produced by fold_events back into a [sleep, wake] frame,
    sorted by sleep time. Rows whose wake is not after their sleep are rejected.
    """
    lines = text.split("\n")
    if lines and lines[0].strip() == CSV_HEADER:
        lines = lines[1:]

    pairs: List[Tuple[pd.Timestamp, pd.Timestamp]] = [_parse_line(line) for line in lines if line.strip()]
    df = pd.DataFrame(pairs, columns=["sleep", "wake"])
    if df.empty:
        return pd.DataFrame(
            {"sleep": pd.Series(dtype="datetime64[ns, UTC]"), "wake": pd.Series(dtype="datetime64[ns, UTC]")}
        )
    return df.sort_values("sleep", kind="stable").reset_index(drop=True)


def load_sleep_csv(path: Union[str, Path]) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sleep CSV not found: {path}")
    return parse_sleep_csv(path.read_text(encoding="utf-8"))
