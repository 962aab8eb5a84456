from __future__ import annotations

import asyncio

import pytest
from google.api_core import exceptions as gexc

from lexi.errors import StorageError
from lexi.store import FirestoreKeyValueStore, WordStore

from tests.fakes import FakeAsyncFirestoreClient, FakeClock


def test_set_get_remove_roundtrip() -> None:
    client = FakeAsyncFirestoreClient()
    kv = FirestoreKeyValueStore(client=client, collection="lexi_kv")

    async def _scenario() -> None:
        assert await kv.get("lexi_words") is None
        await kv.set("lexi_words", [{"id": "a"}])
        assert await kv.get("lexi_words") == [{"id": "a"}]
        await kv.remove("lexi_words")
        assert await kv.get("lexi_words") is None

    asyncio.run(_scenario())


def test_document_layout() -> None:
    client = FakeAsyncFirestoreClient()
    kv = FirestoreKeyValueStore(client=client, collection="lexi_kv")

    asyncio.run(kv.set("lexi_words", []))

    doc = client._data["lexi_kv"]["lexi_words"]
    assert doc["value"] == []
    assert isinstance(doc["updated_at"], str)


@pytest.mark.parametrize("operation", ["get", "set", "remove"])
def test_api_errors_become_storage_error(operation: str) -> None:
    client = FakeAsyncFirestoreClient()
    client.fail_with = gexc.ServiceUnavailable("firestore down")
    kv = FirestoreKeyValueStore(client=client, collection="lexi_kv")

    async def _call() -> None:
        if operation == "get":
            await kv.get("lexi_words")
        elif operation == "set":
            await kv.set("lexi_words", [])
        else:
            await kv.remove("lexi_words")

    with pytest.raises(StorageError) as excinfo:
        asyncio.run(_call())

    assert excinfo.value.operation == operation
    assert isinstance(excinfo.value.__cause__, gexc.ServiceUnavailable)


def test_remove_missing_document_is_silent() -> None:
    client = FakeAsyncFirestoreClient()
    client.fail_with = gexc.NotFound("no such document")
    client.fail_on = {"delete"}
    kv = FirestoreKeyValueStore(client=client, collection="lexi_kv")

    asyncio.run(kv.remove("lexi_words"))


def test_word_store_over_firestore(clock: FakeClock) -> None:
    client = FakeAsyncFirestoreClient()
    store = WordStore(FirestoreKeyValueStore(client=client, collection="lexi_kv"), "lexi_words", clock=clock)

    async def _scenario() -> None:
        record = await store.add_word("ubiquitous", "(adjective) found everywhere", "")
        updated = await store.process_review(record.id, 5)
        assert updated is not None
        assert client._data["lexi_kv"]["lexi_words"]["value"] == [updated.to_storage()]
        await store.clear_all()
        assert await store.get_all_words() == []

    asyncio.run(_scenario())

