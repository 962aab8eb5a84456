from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from .config import settings
from .errors import InvalidQualityError, StorageError
from .logging import configure_logging, logger
from .middleware import AccessLogMiddleware
from .routers import health, words


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """永続化層の失敗は汎用の「保存/読み込みできなかった」応答に揃える。"""
    logger.error(
        "storage_error",
        path=request.url.path,
        operation=exc.operation,
        storage_key=exc.key,
        error_message=str(exc),
    )
    return JSONResponse(status_code=503, content={"detail": "couldn't save/load your words"})


async def _invalid_quality_handler(request: Request, exc: InvalidQualityError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    configure_logging()
    logger.info(
        "app_init",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
        serialize_writes=settings.serialize_writes,
    )
    app = FastAPI(title="Lexi API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # 後から追加したミドルウェアが外側で実行される。アクセスログは最外周。
    app.add_middleware(AccessLogMiddleware)

    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(InvalidQualityError, _invalid_quality_handler)

    app.include_router(health.router)
    app.include_router(words.router, prefix="/api/words")
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn (`lexi-api` console script)."""
    uvicorn.run(app, host="0.0.0.0", port=8000, log_config=None)
