from __future__ import annotations

import os

from google.cloud import firestore

from ..config import Settings, settings
from .firestore_kv import FirestoreKeyValueStore
from .kv import KeyValueStore, MemoryKeyValueStore
from .sqlite_kv import SQLiteKeyValueStore
from .words import WordStore

_DEFAULT_EMULATOR_HOST = "127.0.0.1:8080"


def _normalize_emulator_host(raw_host: str | None) -> str | None:
    """FIRESTORE_EMULATOR_HOST で受け取ったホスト文字列を正規化する。

    スキームなしの `localhost:8080` でもクライアントオプションに渡せるよう、
    http:// を自動付与する。空文字や None は未設定として扱う。
    """

    host = (raw_host or "").strip()
    if not host:
        return None
    if host.startswith(("http://", "https://")):
        return host
    return f"http://{host}"


def _build_firestore_kv(config: Settings) -> KeyValueStore:
    """Firestore の非同期クライアントから KV ストアを構築する。

    - FIRESTORE_EMULATOR_HOST が指定されていればエミュレータ向けのエンドポイントを使用。
    - 開発モードではホスト未指定でも 127.0.0.1:8080 のエミュレータを優先。
    - それ以外は Cloud Firestore へ接続する。
    """

    environment_name = (config.environment or "").strip().lower()
    emulator_host = _normalize_emulator_host(
        config.firestore_emulator_host
        or os.environ.get("FIRESTORE_EMULATOR_HOST")
        or (_DEFAULT_EMULATOR_HOST if environment_name != "production" else None)
    )
    project_id = config.firestore_project_id or config.gcp_project_id
    if emulator_host:
        # google-cloud-firestore は FIRESTORE_EMULATOR_HOST を検知して匿名認証へ切り替える。
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", emulator_host.replace("http://", "").replace("https://", ""))
        client = firestore.AsyncClient(project=project_id, client_options={"api_endpoint": emulator_host})
    else:
        client = firestore.AsyncClient(project=project_id)
    return FirestoreKeyValueStore(client=client, collection=config.firestore_collection)


def build_kv(config: Settings) -> KeyValueStore:
    if config.storage_backend == "memory":
        return MemoryKeyValueStore()
    if config.storage_backend == "firestore":
        return _build_firestore_kv(config)
    return SQLiteKeyValueStore(config.sqlite_db_path)


def create_word_store(config: Settings = settings) -> WordStore:
    """設定に従って、アプリ全体で共有する単語ストアを初期化する。"""

    return WordStore(
        build_kv(config),
        config.words_storage_key,
        serialize_writes=config.serialize_writes,
    )


store = create_word_store()

__all__ = [
    "FirestoreKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "WordStore",
    "build_kv",
    "create_word_store",
    "store",
]
