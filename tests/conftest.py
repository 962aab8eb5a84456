"""Pytest configuration: import paths, in-memory storage and a controllable clock."""

import os
import sys
from pathlib import Path

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
for _path in (_PROJECT_ROOT, _PROJECT_ROOT / "apps" / "backend"):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

# モジュール import 時に生成される共有ストアが .data/ に SQLite を作らないよう、
# テストでは既定でインメモリ KV を使う。個別テストは monkeypatch で上書き可能。
os.environ.setdefault("STORAGE_BACKEND", "memory")

from lexi.store import MemoryKeyValueStore, WordStore  # noqa: E402
from tests.fakes import FakeClock  # noqa: E402


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def word_store(kv: MemoryKeyValueStore, clock: FakeClock) -> WordStore:
    return WordStore(kv, "lexi_words", clock=clock)
