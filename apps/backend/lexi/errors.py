from __future__ import annotations


class StorageError(RuntimeError):
    """Persistence medium unavailable or write rejected.

    KV バックエンド固有の例外（sqlite3.Error や Firestore の API 例外など）は
    すべてこの型に包み、`__cause__` に元の例外を残して呼び出し側へ伝播させる。
    リトライは呼び出し側の責務。
    """

    def __init__(self, message: str, *, operation: str | None = None, key: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key


class InvalidQualityError(ValueError):
    """Review quality outside the integer range [0, 5]."""

    def __init__(self, quality: object) -> None:
        super().__init__(f"quality must be an integer in [0, 5], got {quality!r}")
        self.quality = quality
