from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sleep_charter.data_processing.column_parser import flatten_events, parse_columns
from sleep_charter.data_processing.csv_builder import check_chronological, fold_rows, render_csv, write_sleep_csv
from sleep_charter.data_processing.sleep_csv import load_sleep_csv
from sleep_charter.data_processing.timeparse import resolve_timezone
from sleep_charter.sources.google_sheets import DEFAULT_RANGE, get_sheet_data
from sleep_charter.sources.sheet_cache import DEFAULT_TTL_SECONDS, Grid
from sleep_charter.utils.timer import timed

log = logging.getLogger(__name__)


def load_grid_json(path: Path) -> Grid:
    """Column-major grid saved as a JSON list of lists (e.g. a dumped cache)."""
    if not path.exists():
        raise FileNotFoundError(f"Grid file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    # Accept a sheet cache file as-is.
    if isinstance(data, dict) and "data" in data:
        data = data["data"]
    if not isinstance(data, list) or not all(isinstance(col, list) for col in data):
        raise ValueError(f"Grid JSON must be a list of columns (lists of strings): {path}")
    return [[str(c) for c in col] for col in data]


def verify_sleep_csv(path: Path) -> bool:
    """
    Reads the written CSV back the way the timeline renderer does. A row whose
    wake is not after its sleep is reported, not fatal.
    """
    try:
        df = load_sleep_csv(path)
    except ValueError as e:
        log.warning("Written CSV will not render cleanly: %s", e)
        return False
    log.info("Read back %d sleep rows from %s", len(df), path.as_posix())
    return True


def fetch_grid(cfg: Dict[str, Any]) -> Grid:
    sheet = cfg.get("sheet", {}) or {}
    sheet_id = sheet.get("id")
    if not sheet_id:
        raise ValueError("No sheet id configured. Set sheet.id in the config or SHEET_ID in the environment.")

    cache = cfg.get("cache", {}) or {}
    cache_path = Path(cache["path"]) if cache.get("enabled", True) and cache.get("path") else None
    return get_sheet_data(
        str(sheet_id),
        str(sheet.get("range", DEFAULT_RANGE)),
        cache_path=cache_path,
        ttl_seconds=int(cache.get("ttl_seconds", DEFAULT_TTL_SECONDS)),
    )


def generate_sleep_csv(cfg: Dict[str, Any], grid: Optional[Grid] = None) -> Dict[str, object]:
    """
    Sheet grid -> parsed days -> sleep/wake CSV, plus a JSON summary next to it.
    `grid` skips the remote fetch when given.
    """
    tz = resolve_timezone(cfg.get("timezone"))
    parsing = cfg.get("parsing", {}) or {}
    out_csv = Path(cfg["output"]["csv"])
    out_meta = Path(cfg["output"]["meta"])

    timings: Dict[str, float] = {}
    with timed("fetch", timings):
        if grid is None:
            grid = fetch_grid(cfg)

    with timed("parse", timings):
        days = parse_columns(
            grid,
            tz,
            skip_invalid=bool(parsing.get("skip_invalid_columns", False)),
            progress=bool(parsing.get("progress", False)),
        )
        events = flatten_events(days)

    out_of_order: List[int] = check_chronological(events)
    for i in out_of_order:
        log.warning(
            "Event %d (%s at %s) is earlier than the one before it; rows keep sheet order.",
            i,
            events[i].event_type.value,
            events[i].time.isoformat(),
        )

    with timed("fold", timings):
        rows = fold_rows(events, tz)
        text = render_csv(rows)
    n_rows = len(rows)

    with timed("persist", timings):
        write_sleep_csv(text, out_csv)

    readback_ok = verify_sleep_csv(out_csv)

    meta = {
        "n_columns": len(grid),
        "n_days": len(days),
        "n_events": len(events),
        "n_rows": n_rows,
        "timezone": str(tz),
        "out_of_order": out_of_order,
        "readback_ok": readback_ok,
        "timings_sec": timings,
    }
    out_meta.parent.mkdir(parents=True, exist_ok=True)
    out_meta.write_text(json.dumps(meta, indent=2), encoding="utf-8")

    log.info("Sleep CSV complete: %s (%d rows from %d days)", out_csv.as_posix(), n_rows, len(days))
    return {"csv_path": str(out_csv), "meta_path": str(out_meta), "n_rows": n_rows, "timings": timings}
