from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import List, Optional, Union

log = logging.getLogger(__name__)

Grid = List[List[str]]

DEFAULT_TTL_SECONDS = 60 * 60


def read_sheet_cache(path: Union[str, Path], sheet_id: str, now: Optional[float] = None) -> Optional[Grid]:
    """
    Returns the cached grid for `sheet_id`, or None on a miss.

    A missing, unreadable, expired or foreign-id cache file is a miss.
    """
    path = Path(path)
    now = time.time() if now is None else now
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable sheet cache %s: %s", path.as_posix(), e)
        return None

    if not isinstance(payload, dict):
        log.warning("Ignoring malformed sheet cache %s", path.as_posix())
        return None
    if payload.get("id") != sheet_id:
        return None
    if float(payload.get("cache_expiry", 0)) < now:
        return None

    data = payload.get("data")
    return data if isinstance(data, list) else None


def write_sheet_cache(
    path: Union[str, Path],
    sheet_id: str,
    data: Grid,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: Optional[float] = None,
) -> Path:
    path = Path(path)
    now = time.time() if now is None else now
    payload = {"cache_expiry": now + ttl_seconds, "id": sheet_id, "data": data}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
