from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import google.auth
from googleapiclient.discovery import build

from sleep_charter.sources.sheet_cache import DEFAULT_TTL_SECONDS, Grid, read_sheet_cache, write_sheet_cache

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]
DEFAULT_RANGE = "A1:Z20"


def get_service(scopes: Sequence[str] = SCOPES) -> Any:
    """Sheets v4 client authenticated with Application Default Credentials."""
    creds, _ = google.auth.default(scopes=list(scopes))
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def fetch_sheet_columns(service: Any, sheet_id: str, value_range: str = DEFAULT_RANGE) -> Grid:
    """
    Reads `value_range` of the spreadsheet in column-major order.

    The API drops trailing blank cells, so columns come back ragged.
    """
    ss = service.spreadsheets()
    meta = ss.get(spreadsheetId=sheet_id).execute()
    sheets = meta.get("sheets") or []
    grid_props = sheets[0].get("properties", {}).get("gridProperties") if sheets else None
    if not grid_props:
        raise RuntimeError(f"Spreadsheet {sheet_id} has no grid properties on its first sheet")

    result = ss.values().get(spreadsheetId=sheet_id, range=value_range, majorDimension="COLUMNS").execute()
    values = result.get("values")
    if not values:
        raise RuntimeError("Sheet contained no data")
    return [[str(c) for c in col] for col in values]


def get_sheet_data(
    sheet_id: str,
    value_range: str = DEFAULT_RANGE,
    *,
    cache_path: Optional[Union[str, Path]] = None,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    service: Any = None,
) -> Grid:
    """
    Cache-first fetch of the raw grid. A fresh fetch refreshes the cache.
    `service` is created lazily so cache hits never authenticate.
    """
    if cache_path is not None:
        cached = read_sheet_cache(cache_path, sheet_id)
        if cached is not None:
            log.info("cache hit")
            return cached
        log.info("cache miss")

    if service is None:
        service = get_service()
        log.info("logged in")

    data = fetch_sheet_columns(service, sheet_id, value_range)
    if cache_path is not None:
        write_sheet_cache(cache_path, sheet_id, data, ttl_seconds=ttl_seconds)
    return data
