"""テスト用の時計と Firestore 非同期クライアントの簡易フェイク。"""

from __future__ import annotations

from typing import Any

T0 = 1_700_000_000_000  # 2023-11-14T22:13:20Z


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeDocumentSnapshot:
    def __init__(self, doc_id: str, data: dict[str, Any] | None) -> None:
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return None if self._data is None else dict(self._data)


class FakeAsyncDocumentReference:
    def __init__(self, client: "FakeAsyncFirestoreClient", collection: str, doc_id: str) -> None:
        self._client = client
        self._collection = collection
        self.id = doc_id

    def _bucket(self) -> dict[str, dict[str, Any]]:
        return self._client._data.setdefault(self._collection, {})

    async def get(self) -> FakeDocumentSnapshot:
        self._client._maybe_fail("get")
        payload = self._bucket().get(self.id)
        return FakeDocumentSnapshot(self.id, dict(payload) if payload is not None else None)

    async def set(self, data: dict[str, Any], merge: bool = False) -> None:
        self._client._maybe_fail("set")
        bucket = self._bucket()
        if merge and self.id in bucket:
            bucket[self.id].update(data)
        else:
            bucket[self.id] = dict(data)

    async def delete(self) -> None:
        self._client._maybe_fail("delete")
        self._bucket().pop(self.id, None)


class FakeAsyncCollectionReference:
    def __init__(self, client: "FakeAsyncFirestoreClient", name: str) -> None:
        self._client = client
        self._name = name

    def document(self, doc_id: str) -> FakeAsyncDocumentReference:
        return FakeAsyncDocumentReference(self._client, self._name, doc_id)


class FakeAsyncFirestoreClient:
    """Minimal stand-in for `firestore.AsyncClient` (collection/document get/set/delete).

    `fail_with` に例外を設定すると、対応する操作（`fail_on`）で送出する。
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self.fail_with: BaseException | None = None
        self.fail_on: set[str] = {"get", "set", "delete"}

    def collection(self, name: str) -> FakeAsyncCollectionReference:
        return FakeAsyncCollectionReference(self, name)

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_with is not None and operation in self.fail_on:
            raise self.fail_with
