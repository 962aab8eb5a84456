"""SM-2 review scheduling.

State-in, state-out: nothing here touches storage. `WordStore.process_review`
reads the record, calls `apply_review` and persists the result.

- quality: 0..5 (5=perfect recall, 0=blackout), 3 以上で合格
- 合格時の間隔は repetition 0 → 1 日, 1 → 6 日, 以降は旧 interval × 旧 efactor
- 不合格時は repetition=0, interval=1（同一セッション内で無限ループさせず翌日に回す）
- efactor は合否に関わらず今回の quality で更新し、1.3 を下限とする
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .errors import InvalidQualityError
from .models.word import HistoryEntry, WordRecord


MIN_EFACTOR = 1.3
DEFAULT_EFACTOR = 2.5
DAY_MS = 24 * 60 * 60 * 1000
PASS_THRESHOLD = 3
MIN_QUALITY = 0
MAX_QUALITY = 5


def validate_quality(quality: object) -> int:
    # bool は int のサブクラスなので明示的に弾く
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up (2.5 → 3).

    組み込みの round() は銀行丸め（2.5 → 2）。`floor(x + 0.5)` は
    0.49999999999999994 を 1 にしてしまうため、float を正確な Decimal に変換して丸める。
    """
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def next_interval(interval: int, repetition: int, efactor: float, quality: int) -> tuple[int, int]:
    """Return (interval_days, repetition) after a review of the given quality."""
    if quality >= PASS_THRESHOLD:
        if repetition == 0:
            new_interval = 1
        elif repetition == 1:
            new_interval = 6
        else:
            new_interval = round_half_up(interval * efactor)
        return new_interval, repetition + 1
    return 1, 0


def next_efactor(efactor: float, quality: int) -> float:
    penalty = 5 - quality
    updated = efactor + (0.1 - penalty * (0.08 + penalty * 0.02))
    return max(updated, MIN_EFACTOR)


def apply_review(record: WordRecord, quality: int, now_ms: int) -> WordRecord:
    """Return a new record with the review applied; `record` is left untouched.

    interval の計算には更新前の efactor を使う。nextReview は
    レビュー時刻 + interval 日（ミリ秒）で、端数日は扱わない。
    """
    quality = validate_quality(quality)
    interval, repetition = next_interval(record.interval, record.repetition, record.efactor, quality)
    efactor = next_efactor(record.efactor, quality)
    return record.model_copy(
        update={
            "interval": interval,
            "repetition": repetition,
            "efactor": efactor,
            "next_review": now_ms + interval * DAY_MS,
            "history": [*record.history, HistoryEntry(date=now_ms, quality=quality)],
        }
    )
