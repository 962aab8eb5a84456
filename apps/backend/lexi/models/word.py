from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """One processed review: epoch-ms timestamp and the quality given.

    過去のエントリは書き換えないため、未知のフィールドもそのまま保持する。
    """

    model_config = ConfigDict(extra="allow")

    date: int
    quality: int


class WordRecord(BaseModel):
    """A vocabulary item with its SM-2 review state.

    永続化フォーマットはブラウザ版が localStorage に書いたデータと互換のため camelCase
    （`createdAt`/`nextReview`）で保存する。Python 側では snake_case 属性で
    扱い、保存・API 応答では `model_dump(by_alias=True)` を使う。
    未知のフィールドは他クライアントが書いたデータとして保持し、そのまま書き戻す。
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    word: str
    definition: str
    example: str
    created_at: int = Field(alias="createdAt")
    next_review: int = Field(alias="nextReview")
    interval: int = Field(default=0, ge=0)
    repetition: int = Field(default=0, ge=0)
    efactor: float = Field(default=2.5, ge=1.3)
    history: list[HistoryEntry] = Field(default_factory=list)

    def is_due(self, now_ms: int) -> bool:
        return self.next_review <= now_ms

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
