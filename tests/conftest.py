"""Pytest configuration: make `vocabdeck` importable and isolate the store."""

import os
import sys
from pathlib import Path

import pytest

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "apps" / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

# テストでは .env の値に左右されないよう緩いモードで起動する
os.environ.setdefault("STRICT_MODE", "false")


@pytest.fixture(autouse=True)
def _reset_review_store():
    from vocabdeck.store import store

    store.reset()
    yield
    store.reset()
