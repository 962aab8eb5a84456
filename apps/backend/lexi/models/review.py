from __future__ import annotations

from pydantic import BaseModel, Field

from .word import WordRecord


class WordCreateRequest(BaseModel):
    """Request model for adding a word to the collection.

    見出し語・定義・例文を受け取る。定義や例文は外部（AI 等）で用意された
    ものをそのまま保存する。
    """

    word: str = Field(min_length=1, max_length=128, description="学習する語（1..128文字）")
    definition: str = Field(default="", max_length=2000)
    example: str = Field(default="", max_length=2000)


class ReviewRequest(BaseModel):
    """Request model for submitting a review quality.

    - quality: 0..5（5=完全想起, 0=全く思い出せない, 3 以上で合格）
    """

    quality: int = Field(ge=0, le=5, strict=True)


class WordListResponse(BaseModel):
    items: list[WordRecord]


class ReviewStats(BaseModel):
    """進捗の見える化用の統計。

    - total: 登録済みの語数
    - due_now: 現在時点で復習すべき件数
    - reviewed_today: 当日 00:00 UTC 以降に処理したレビュー件数
    """

    total: int
    due_now: int
    reviewed_today: int
