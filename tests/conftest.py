import sys
from pathlib import Path

import pandas as pd
import pytest

# Ensure repository root is on sys.path so tests can import the package uninstalled
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    # Config overrides must not leak in from the developer's shell
    monkeypatch.delenv("SHEET_ID", raising=False)
    monkeypatch.delenv("SLEEP_TZ", raising=False)
    yield


def utc(s: str) -> pd.Timestamp:
    return pd.Timestamp(s, tz="UTC")
