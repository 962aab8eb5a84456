from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DB_PATH = ".data/lexi.sqlite3"
DEFAULT_STORAGE_KEY = "lexi_words"

StorageBackend = Literal["memory", "sqlite", "firestore"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - environment: 実行環境（development/staging/production など）
    - storage_backend: 単語コレクションを保持する KV ストア（memory/sqlite/firestore）
    - words_storage_key: コレクション全体を格納する固定キー
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level / ルートロガーのレベル",
    )

    # --- データ永続化設定 ---
    storage_backend: StorageBackend = Field(
        default="sqlite",
        description="Key-value backend for the word collection / 単語コレクションの保存先",
    )
    words_storage_key: str = Field(
        default=DEFAULT_STORAGE_KEY,
        min_length=1,
        description="Fixed key holding the whole word collection / コレクション全体を格納するキー",
    )
    sqlite_db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to SQLite database for the KV table / KVテーブル用SQLite DBパス",
    )
    serialize_writes: bool = Field(
        default=True,
        description=(
            "Serialize read-modify-write operations per store / "
            "読み込み→更新→書き込みをストア単位で直列化する"
        ),
    )

    # --- Firestore ---
    firestore_project_id: str | None = Field(
        default=None,
        description="Firestore project ID / Firestore のプロジェクトID",
    )
    firestore_emulator_host: str | None = Field(
        default=None,
        description="Firestore emulator host (host:port) / エミュレータのホスト",
    )
    firestore_collection: str = Field(
        default="lexi_kv",
        min_length=1,
        description="Collection used as the KV namespace / KV として使うコレクション名",
    )

    # --- Observability ---
    gcp_project_id: str | None = Field(
        default=None,
        description="GCP project ID used to build Cloud Trace log fields / Cloud Trace 連携用プロジェクトID",
    )

    # Pydantic v2 settings config
    # - env_file: .env を読み込む
    # - extra: .env に存在する未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalise_storage_backend(cls, raw: object) -> object:
        """Lower-case and trim the backend name before the literal check.

        `STORAGE_BACKEND=SQLite ` のような表記揺れを許容しつつ、未知の値は
        Literal 検証でそのまま弾く。
        """

        if isinstance(raw, str):
            return raw.strip().lower()
        return raw

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, raw: object) -> object:
        if isinstance(raw, str):
            return raw.strip().upper() or "INFO"
        return raw


settings = Settings()
