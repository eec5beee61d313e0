from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "SHEET_ID": "sheet.id",
    "SLEEP_TZ": "timezone",
}


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping/dict: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges override into base (override wins).
    """
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, Mapping):
            out[k] = _deep_merge(out[k], v)  # type: ignore[arg-type]
        else:
            out[k] = v
    return out


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Loads a YAML config file with optional inheritance via:
      extends: "base.yaml"
    or
      extends:
        - "base.yaml"
        - "other.yaml"

    Paths in 'extends' are resolved relative to the current config file.
    """
    path = Path(path)

    cfg = load_yaml(path)

    extends = cfg.get("extends")
    merged: Dict[str, Any] = {}

    if extends:
        if isinstance(extends, (str, Path)):
            parents = [extends]
        elif isinstance(extends, list):
            parents = extends
        else:
            raise ValueError("Config key 'extends' must be a string or a list of strings.")

        for parent in parents:
            parent_path = Path(parent)
            if not parent_path.is_absolute():
                parent_path = (path.parent / parent_path).resolve()
            merged = _deep_merge(merged, load_config(parent_path))

    cfg_no_extends = dict(cfg)
    cfg_no_extends.pop("extends", None)
    merged = _deep_merge(merged, cfg_no_extends)

    merged.setdefault("_meta", {})
    merged["_meta"]["config_path"] = str(path.resolve())

    return merged


def _set_dotted(cfg: Dict[str, Any], dotted: str, value: Any) -> None:
    node = cfg
    *parents, leaf = dotted.split(".")
    for key in parents:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[leaf] = value


def apply_env_overrides(cfg: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Non-empty SHEET_ID / SLEEP_TZ environment variables replace the matching
    config keys. Returns a new dict.
    """
    environ = os.environ if environ is None else environ
    out = copy.deepcopy(dict(cfg))
    for var, dotted in ENV_OVERRIDES.items():
        value = environ.get(var, "").strip()
        if value:
            _set_dotted(out, dotted, value)
    return out


def ensure_dirs(cfg: Dict[str, Any]) -> None:
    """
    Creates parent directories for the output files and the sheet cache.
    Safe to call multiple times.

    Expected config layout:
      output:
        csv: out/sleepData.csv
        meta: out/sleepData.meta.json
      cache:
        path: cache/cache.json
    """
    paths = []
    output = cfg.get("output", {}) or {}
    if isinstance(output, dict):
        paths.extend(output.values())

    cache = cfg.get("cache", {}) or {}
    if isinstance(cache, dict) and cache.get("enabled", True):
        paths.append(cache.get("path"))

    for p in paths:
        if isinstance(p, (str, Path)) and str(p).strip():
            pp = Path(p)
            # File paths get their parent created, bare directories themselves.
            parent = pp if pp.suffix == "" else pp.parent
            parent.mkdir(parents=True, exist_ok=True)
