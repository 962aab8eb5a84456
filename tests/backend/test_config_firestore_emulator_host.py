import os
import types

from lexi import config as lexi_config
from lexi import store as lexi_store


def test_normalize_accepts_docker_service_host():
    """Docker Compose の service 名ホストでも http:// 付きに正規化されることを担保する。"""

    assert (
        lexi_store._normalize_emulator_host("firestore-emulator:8080")
        == "http://firestore-emulator:8080"
    )
    assert lexi_store._normalize_emulator_host("https://emu.local") == "https://emu.local"
    assert lexi_store._normalize_emulator_host("  ") is None


def test_build_kv_uses_service_host(monkeypatch):
    """環境変数のエミュレータホストが api_endpoint へ反映されることを確認する。"""

    monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", "firestore-emulator:8080")
    config = lexi_config.Settings(
        _env_file=None,
        storage_backend="firestore",
        firestore_project_id="lexi-local",
        firestore_collection="words_kv",
    )

    captured: dict[str, object] = {}

    class DummyAsyncClient:
        def __init__(self, project=None, client_options=None):
            captured["project"] = project
            captured["client_options"] = client_options

    dummy_firestore = types.SimpleNamespace(AsyncClient=DummyAsyncClient)
    monkeypatch.setattr(lexi_store, "firestore", dummy_firestore)

    kv = lexi_store.build_kv(config)

    assert isinstance(kv, lexi_store.FirestoreKeyValueStore)
    assert captured["project"] == "lexi-local"
    assert captured["client_options"] == {"api_endpoint": "http://firestore-emulator:8080"}
    # google-cloud-firestore がエミュレータへ向くよう、スキーム無しの値が残っていることも確認
    assert os.environ["FIRESTORE_EMULATOR_HOST"] == "firestore-emulator:8080"


def test_production_connects_to_cloud_firestore(monkeypatch):
    """production ではホスト未指定時に既定エミュレータへフォールバックしない。"""

    monkeypatch.delenv("FIRESTORE_EMULATOR_HOST", raising=False)
    config = lexi_config.Settings(
        _env_file=None,
        environment="production",
        storage_backend="firestore",
        gcp_project_id="lexi-prod",
    )

    captured: dict[str, object] = {}

    class DummyAsyncClient:
        def __init__(self, project=None, client_options=None):
            captured["project"] = project
            captured["client_options"] = client_options

    monkeypatch.setattr(lexi_store, "firestore", types.SimpleNamespace(AsyncClient=DummyAsyncClient))

    lexi_store.build_kv(config)

    assert captured == {"project": "lexi-prod", "client_options": None}
    assert "FIRESTORE_EMULATOR_HOST" not in os.environ
