from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import anyio
from pydantic import ValidationError

from ..errors import StorageError
from ..logging import logger
from ..models.review import ReviewStats
from ..models.word import WordRecord
from ..srs import DEFAULT_EFACTOR, apply_review, validate_quality
from .kv import KeyValueStore


def _now_ms() -> int:
    return int(time.time() * 1000)


def _start_of_utc_day_ms(now_ms: int) -> int:
    now = datetime.fromtimestamp(now_ms / 1000, tz=UTC)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(start.timestamp() * 1000)


class WordStore:
    """Word collection persisted as one entry of a key-value medium.

    すべての操作はコレクション全体の読み込み→計算→書き込み。部分更新 API は持たない。
    `serialize_writes=True` のとき、更新系（add/delete/process_review/clear_all）は
    ストア単位の anyio.Lock で直列化され、同一プロセス内の lost update を防ぐ。
    別プロセス・別タブからの同時書き込みは依然として後勝ちになる。
    """

    def __init__(
        self,
        kv: KeyValueStore,
        key: str,
        *,
        clock: Callable[[], int] = _now_ms,
        serialize_writes: bool = True,
    ) -> None:
        self._kv = kv
        self.key = key
        self._clock = clock
        self._serialize_writes = serialize_writes
        # 特定のイベントループに束縛しない（asyncio.run の繰り返しや TestClient のポータル間で共有される）
        self._write_lock = anyio.Lock()

    @asynccontextmanager
    async def _writing(self) -> AsyncIterator[None]:
        if not self._serialize_writes:
            yield
            return
        async with self._write_lock:
            yield

    async def _load(self) -> list[WordRecord]:
        try:
            raw = await self._kv.get(self.key)
        except StorageError:
            logger.error("storage_failed", operation="get", storage_key=self.key)
            raise
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise StorageError(f"stored collection under {self.key!r} is not a list", operation="get", key=self.key)
        try:
            return [WordRecord.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise StorageError(f"stored collection under {self.key!r} is malformed", operation="get", key=self.key) from exc

    async def _persist(self, records: Iterable[WordRecord]) -> None:
        payload = [record.to_storage() for record in records]
        try:
            await self._kv.set(self.key, payload)
        except StorageError:
            logger.error("storage_failed", operation="set", storage_key=self.key, count=len(payload))
            raise

    # --- public API ---
    async def add_word(self, word: str, definition: str, example: str) -> WordRecord:
        """Create a record due immediately and append it to the collection."""
        now = self._clock()
        record = WordRecord(
            id=str(uuid.uuid4()),
            word=word,
            definition=definition,
            example=example,
            created_at=now,
            next_review=now,
            interval=0,
            repetition=0,
            efactor=DEFAULT_EFACTOR,
            history=[],
        )
        async with self._writing():
            words = await self._load()
            words.append(record)
            await self._persist(words)
        logger.info("word_added", word_id=record.id, word=word, total=len(words))
        return record

    async def get_all_words(self) -> list[WordRecord]:
        return await self._load()

    async def save_words(self, records: Iterable[WordRecord]) -> None:
        """Replace the whole persisted collection."""
        await self._persist(list(records))

    async def get_word(self, word_id: str) -> WordRecord | None:
        for record in await self._load():
            if record.id == word_id:
                return record
        return None

    async def get_due_words(self, now: int | None = None) -> list[WordRecord]:
        """Records with `nextReview <= now`, in collection order."""
        now_ms = self._clock() if now is None else now
        return [record for record in await self._load() if record.is_due(now_ms)]

    async def delete_word(self, word_id: str) -> None:
        """Remove the record if present; a missing id is a no-op."""
        async with self._writing():
            words = await self._load()
            remaining = [record for record in words if record.id != word_id]
            await self._persist(remaining)
        if len(remaining) != len(words):
            logger.info("word_deleted", word_id=word_id, total=len(remaining))

    async def clear_all(self) -> None:
        """Administrative reset: drop the entire collection entry."""
        async with self._writing():
            try:
                await self._kv.remove(self.key)
            except StorageError:
                logger.error("storage_failed", operation="remove", storage_key=self.key)
                raise
        logger.warning("words_cleared", storage_key=self.key)

    async def process_review(self, word_id: str, quality: int, now: int | None = None) -> WordRecord | None:
        """Apply one SM-2 review and persist it.

        存在しない id（別画面で削除済みなど）は例外ではなく None を返す。
        quality の検証はストレージ I/O より前に行う。
        """
        quality = validate_quality(quality)
        async with self._writing():
            words = await self._load()
            index = next((i for i, record in enumerate(words) if record.id == word_id), None)
            if index is None:
                logger.info("review_word_missing", word_id=word_id, quality=quality)
                return None
            reviewed_at = self._clock() if now is None else now
            updated = apply_review(words[index], quality, reviewed_at)
            words[index] = updated
            await self._persist(words)
        logger.info(
            "review_processed",
            word_id=word_id,
            quality=quality,
            interval=updated.interval,
            repetition=updated.repetition,
            efactor=updated.efactor,
            next_review=updated.next_review,
        )
        return updated

    async def get_stats(self, now: int | None = None) -> ReviewStats:
        now_ms = self._clock() if now is None else now
        day_start = _start_of_utc_day_ms(now_ms)
        words = await self._load()
        return ReviewStats(
            total=len(words),
            due_now=sum(1 for record in words if record.is_due(now_ms)),
            reviewed_today=sum(
                1 for record in words for entry in record.history if day_start <= entry.date <= now_ms
            ),
        )
