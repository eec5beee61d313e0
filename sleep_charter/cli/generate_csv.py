from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from sleep_charter.data_processing.generate_sleep_csv import generate_sleep_csv, load_grid_json
from sleep_charter.utils.config import apply_env_overrides, ensure_dirs, load_config
from sleep_charter.utils.logging import setup_logging

log = logging.getLogger(__name__)

DEFAULT_CONFIG = "configs/default.yaml"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Convert the sleep log spreadsheet into a Sleep,Wake CSV.")
    p.add_argument("--config", default=DEFAULT_CONFIG, help="Path to YAML config (supports extends).")
    p.add_argument("--sheet-id", default=None, help="Spreadsheet id (overrides config and SHEET_ID).")
    p.add_argument("--timezone", default=None, help="IANA zone the sheet times are logged in, or 'local'.")
    p.add_argument("--grid-json", default=None, help="Read a column-major grid from JSON instead of the sheet.")
    p.add_argument("--out", default=None, help="Output CSV path (overrides output.csv).")
    p.add_argument("--skip-invalid", action="store_true", help="Skip columns that fail to parse instead of aborting.")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = apply_env_overrides(load_config(args.config))

    if args.sheet_id:
        cfg.setdefault("sheet", {})["id"] = args.sheet_id
    if args.timezone:
        cfg["timezone"] = args.timezone
    if args.out:
        cfg.setdefault("output", {})["csv"] = args.out
    if args.skip_invalid:
        cfg.setdefault("parsing", {})["skip_invalid_columns"] = True

    setup_logging(level=cfg.get("logging", {}).get("level", "INFO"))
    ensure_dirs(cfg)

    try:
        grid = load_grid_json(Path(args.grid_json)) if args.grid_json else None
        result = generate_sleep_csv(cfg, grid=grid)
    except (ValueError, RuntimeError, FileNotFoundError) as e:
        log.error("%s", e)
        return 1

    log.info("CSV written to: %s", result["csv_path"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
