from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import store as store_module
from ..models.review import ReviewRequest, ReviewStats, WordCreateRequest, WordListResponse
from ..models.word import WordRecord
from ..store import WordStore

router = APIRouter(tags=["words"])


def get_store() -> WordStore:
    """Return the shared word store (overridable via `app.dependency_overrides`)."""
    return store_module.store


@router.post(
    "",
    response_model=WordRecord,
    status_code=status.HTTP_201_CREATED,
    summary="単語を追加（即時に復習対象）",
)
async def add_word(req: WordCreateRequest, store: WordStore = Depends(get_store)) -> WordRecord:
    return await store.add_word(req.word, req.definition, req.example)


@router.get("", response_model=WordListResponse, summary="登録済みの単語一覧（登録順）")
async def list_words(store: WordStore = Depends(get_store)) -> WordListResponse:
    return WordListResponse(items=await store.get_all_words())


@router.get("/due", response_model=WordListResponse, summary="現在復習すべき単語")
async def list_due_words(store: WordStore = Depends(get_store)) -> WordListResponse:
    return WordListResponse(items=await store.get_due_words())


@router.get("/stats", response_model=ReviewStats, summary="進捗統計（登録数/残数/今日のレビュー数）")
async def review_stats(store: WordStore = Depends(get_store)) -> ReviewStats:
    return await store.get_stats()


@router.get("/{word_id}", response_model=WordRecord, summary="単語を ID で取得")
async def get_word(word_id: str, store: WordStore = Depends(get_store)) -> WordRecord:
    record = await store.get_word(word_id)
    if record is None:
        raise HTTPException(status_code=404, detail="word not found")
    return record


@router.post("/{word_id}/review", response_model=WordRecord, summary="採点して次回出題時刻を更新")
async def review_word(
    word_id: str, req: ReviewRequest, store: WordStore = Depends(get_store)
) -> WordRecord:
    """Apply an SM-2 review with the given quality (0..5).

    quality の出所（AI 採点・音声認識の差分・手動評価）は問わない。
    対象が削除済みなら 404。
    """
    updated = await store.process_review(word_id, req.quality)
    if updated is None:
        raise HTTPException(status_code=404, detail="word not found")
    return updated


@router.delete("/{word_id}", status_code=status.HTTP_204_NO_CONTENT, summary="単語を削除（存在しなくても成功）")
async def delete_word(word_id: str, store: WordStore = Depends(get_store)) -> Response:
    await store.delete_word(word_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="全単語を削除（管理用リセット）")
async def clear_words(store: WordStore = Depends(get_store)) -> Response:
    await store.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
