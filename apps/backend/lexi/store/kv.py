from __future__ import annotations

import copy
from typing import Any, Protocol


class KeyValueStore(Protocol):
    """Asynchronous string-keyed persistence medium.

    値は JSON 互換の Python 構造（list/dict/str/int/float）。失敗時は
    いずれの実装も `StorageError` を送出する。
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process KV store; get/set deep-copy so callers never alias stored state."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data
