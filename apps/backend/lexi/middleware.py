from __future__ import annotations

import re
import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from structlog import contextvars as structlog_contextvars

from .config import settings
from .logging import logger


# TRACE_ID/SPAN_ID;o=1（SPAN_ID と o= は省略可）
_TRACE_HEADER_RE = re.compile(
    r"^\s*(?P<trace_id>[0-9a-fA-F]{32})/(?P<span_id>\d*)\s*(?:;\s*o=(?P<sampled>[01]))?\s*$"
)
_WORD_ROUTE_RE = re.compile(r"^/api/words/(?P<word_id>[^/]+)(?P<review>/review)?/?$")
_COLLECTION_VIEWS = frozenset({"due", "stats"})
_WORD_ACTIONS = {
    ("GET", False): "get",
    ("DELETE", False): "delete",
    ("POST", True): "review",
}
_MAX_ERROR_MESSAGE = 200


def trace_log_fields(raw_header: str | None, project_id: str | None) -> dict[str, object]:
    """Turn `X-Cloud-Trace-Context` into Cloud Logging's `trace`/`spanId`/`trace_sampled`.

    プロジェクトID未設定や形式不正なら空 dict。spanId は 64bit 符号なし整数に
    収まる場合のみ付与する。
    """

    if not raw_header or not project_id:
        return {}
    match = _TRACE_HEADER_RE.match(raw_header)
    if match is None:
        return {}
    fields: dict[str, object] = {
        "trace": f"projects/{project_id}/traces/{match['trace_id']}",
        "trace_sampled": match["sampled"] == "1",
    }
    span = match["span_id"]
    if span and int(span) < 2**64:
        fields["spanId"] = str(int(span))
    return fields


def word_log_fields(method: str, path: str) -> dict[str, str]:
    """Identify the single-word operation a request targets, if any.

    `/api/words/{id}` 系のリクエストから `word_id` と `word_action`
    （get/delete/review）を取り出す。一覧・due・stats は対象外。
    """

    match = _WORD_ROUTE_RE.match(path)
    if match is None:
        return {}
    word_id = match["word_id"]
    is_review = match["review"] is not None
    if not is_review and method == "GET" and word_id in _COLLECTION_VIEWS:
        return {}
    fields = {"word_id": word_id}
    action = _WORD_ACTIONS.get((method, is_review))
    if action:
        fields["word_action"] = action
    return fields


def _truncate(message: str) -> str:
    if len(message) <= _MAX_ERROR_MESSAGE:
        return message
    return f"{message[: _MAX_ERROR_MESSAGE - 3]}..."


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Assign a request ID and emit one structured `request_complete` line per call.

    - Sets `request.state.request_id` and the `X-Request-ID` response header
    - Binds `request_id` (and trace fields) to structlog contextvars, so store
      events such as `word_added` or `review_processed` carry the same ID
    - Adds `word_id`/`word_action` for single-word routes
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        start = time.time()
        path = request.url.path
        method = request.method
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id
        bound = {
            "request_id": request_id,
            **trace_log_fields(request.headers.get("x-cloud-trace-context"), settings.gcp_project_id),
        }
        structlog_contextvars.bind_contextvars(**bound)
        status_code: int | None = None
        error_type: str | None = None
        error_message: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            status_code = 500
            error_type = exc.__class__.__name__
            error_message = _truncate(str(exc))
            raise
        finally:
            log_method = logger.error if error_type else logger.info
            log_method(
                "request_complete",
                path=path,
                method=method,
                latency_ms=(time.time() - start) * 1000,
                status_code=status_code,
                error_type=error_type,
                error_message=error_message,
                **word_log_fields(method, path),
            )
            structlog_contextvars.unbind_contextvars(*bound.keys())
