from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from google.api_core import exceptions as gexc
from google.cloud import firestore

from ..errors import StorageError


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class FirestoreKeyValueStore:
    """Firestore 上の 1 コレクションを KV として扱う。

    キーごとに 1 ドキュメントを持ち、本体は `{"value": ..., "updated_at": iso}`。
    単語コレクション全体が 1 ドキュメントに収まる前提（上限 1 MiB）。
    """

    def __init__(self, client: firestore.AsyncClient, collection: str) -> None:
        self._client = client
        self._collection = collection

    def _doc(self, key: str) -> firestore.AsyncDocumentReference:
        return self._client.collection(self._collection).document(key)

    async def get(self, key: str) -> Any | None:
        try:
            snapshot = await self._doc(key).get()
        except (gexc.GoogleAPICallError, gexc.RetryError) as exc:
            raise StorageError(f"failed to read {key!r}", operation="get", key=key) from exc
        if not snapshot.exists:
            return None
        payload = snapshot.to_dict() or {}
        return payload.get("value")

    async def set(self, key: str, value: Any) -> None:
        try:
            await self._doc(key).set({"value": value, "updated_at": _now_iso()})
        except (gexc.GoogleAPICallError, gexc.RetryError) as exc:
            raise StorageError(f"failed to write {key!r}", operation="set", key=key) from exc

    async def remove(self, key: str) -> None:
        try:
            await self._doc(key).delete()
        except gexc.NotFound:
            return
        except (gexc.GoogleAPICallError, gexc.RetryError) as exc:
            raise StorageError(f"failed to remove {key!r}", operation="remove", key=key) from exc
