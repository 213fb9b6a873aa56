"""
═══════════════════════════════════════════════════════════════════════════════
PubCid — Главная точка входа сервиса (Application Entry Point)
═══════════════════════════════════════════════════════════════════════════════

Фабрика приложения (Application Factory Pattern) для PubCid-сервиса:
первичный идентификатор браузера + синхронизация с SharedId.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pubcid import __version__
from pubcid.api.health import router as health_router
from pubcid.api.pubcid import router as pubcid_router
from pubcid.config import get_settings
from pubcid.exceptions import PubCidError

# ═══════════════════════════════════════════════════════════════════════════════
# Настройка логирования
# ═══════════════════════════════════════════════════════════════════════════════
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Lifespan — управление жизненным циклом
# ═══════════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan PubCid-сервиса.

    Startup:
        1. Создаём общий httpx.AsyncClient (SharedId + pixel).

    Shutdown:
        1. Закрываем httpx-клиент.
    """
    settings = get_settings()
    logger.info("PubCid v%s starting...", __version__)
    logger.info("   Log level: %s", settings.log_level)
    logger.info("   SharedId endpoint: %s", settings.sharedid_url)

    app.state.http_client = httpx.AsyncClient()

    yield

    await app.state.http_client.aclose()
    app.state.http_client = None
    logger.info("PubCid stopped")


# ═══════════════════════════════════════════════════════════════════════════════
# Фабрика приложения
# ═══════════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Создаёт и конфигурирует PubCid FastAPI-приложение."""
    settings = get_settings()

    _is_production = settings.app_env == "production"

    app = FastAPI(
        redirect_slashes=False,
        title="PubCid",
        description=(
            "Publisher Common ID service: issues a durable first-party browser "
            "identifier and enriches it with SharedId."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if _is_production else "/docs",
        redoc_url=None if _is_production else "/redoc",
        openapi_url=None if _is_production else "/api/v1/openapi.json",
    )

    # ── CORS middleware ──────────────────────────────────────────────────
    # credentials нужны: идентификатор живёт в cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    )

    # ── Подключение API-роутеров ─────────────────────────────────────────
    v1_router = APIRouter(prefix="/api/v1")
    v1_router.include_router(pubcid_router)
    v1_router.include_router(health_router)
    app.include_router(v1_router)

    # ── Глобальный обработчик PubCidError ────────────────────────────────
    @app.exception_handler(PubCidError)
    async def pubcid_error_handler(request: Request, exc: PubCidError) -> JSONResponse:
        """Маппинг кодов PubCid на HTTP-статусы."""
        status_map = {
            "PUBCID_SYNC_TRANSPORT": 502,
            "PUBCID_SYNC_RESPONSE": 502,
            "PUBCID_COOKIE_ERROR": 400,
        }
        status_code = status_map.get(exc.code, 500)
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.details,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            },
        )

    # ── Корневой эндпоинт ────────────────────────────────────────────────
    @app.get("/")
    async def root():
        return {
            "name": "PubCid",
            "version": __version__,
            "module": "pubCommonId",
            "docs": "/docs",
            "api": {
                "v1": {
                    "health": "/api/v1/health",
                    "pubcid": "/api/v1/pubcid",
                },
            },
        }

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Module-level singleton
# ═══════════════════════════════════════════════════════════════════════════════
app = create_app()


def main() -> None:
    """Запускает PubCid-сервис через Uvicorn."""
    settings = get_settings()
    logger.info("Starting PubCid server on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(
        "pubcid.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
