from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Any, Iterator

import anyio  # オフロード用

from ..errors import StorageError


def ensure_tables(conn: sqlite3.Connection) -> None:
    """KV テーブルを初期化する。"""

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )


class SQLiteKeyValueStore:
    """SQLite-backed KV store holding JSON values in a single `kv` table.

    sqlite3 はブロッキング API のため、各操作を `anyio.to_thread.run_sync` で
    スレッドプールへオフロードする。親ディレクトリとスキーマは接続ごとに（存在しなければ）用意する。
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    # --- low-level helpers ---
    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=10.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                ensure_tables(conn)
            yield conn
        finally:
            conn.close()

    def _get_sync(self, key: str) -> Any | None:
        self._ensure_dirs()
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?;", (key,)).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def _set_sync(self, key: str, value: Any) -> None:
        self._ensure_dirs()
        payload = json.dumps(value, ensure_ascii=False)
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at;
                    """,
                    (key, payload, datetime.now(UTC).isoformat()),
                )

    def _remove_sync(self, key: str) -> None:
        self._ensure_dirs()
        with self._connect() as conn:
            with conn:
                conn.execute("DELETE FROM kv WHERE key = ?;", (key,))

    # --- public API ---
    async def get(self, key: str) -> Any | None:
        try:
            return await anyio.to_thread.run_sync(partial(self._get_sync, key))
        except (sqlite3.Error, OSError, ValueError) as exc:
            raise StorageError(f"failed to read {key!r}", operation="get", key=key) from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            await anyio.to_thread.run_sync(partial(self._set_sync, key, value))
        except (sqlite3.Error, OSError, TypeError, ValueError) as exc:
            raise StorageError(f"failed to write {key!r}", operation="set", key=key) from exc

    async def remove(self, key: str) -> None:
        try:
            await anyio.to_thread.run_sync(partial(self._remove_sync, key))
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"failed to remove {key!r}", operation="remove", key=key) from exc
