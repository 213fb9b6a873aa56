"""
═══════════════════════════════════════════════════════════════════════════════
PubCid — Зависимости FastAPI (Dependency Injection)
═══════════════════════════════════════════════════════════════════════════════

Общий ``httpx.AsyncClient`` создаётся в lifespan приложения и лежит
в ``app.state.http_client``. Вне lifespan (например, TestClient без
контекстного менеджера) клиенты создают собственное соединение.
"""

from __future__ import annotations

import httpx
from fastapi import Depends, Request

from pubcid.adapters.sharedid_client import SharedIdClient
from pubcid.config import PubCidSettings, get_settings


def get_http_client(request: Request) -> httpx.AsyncClient | None:
    """Общий httpx-клиент приложения (если lifespan запущен)."""
    return getattr(request.app.state, "http_client", None)


def get_sync_client(
    request: Request,
    settings: PubCidSettings = Depends(get_settings),
    http_client: httpx.AsyncClient | None = Depends(get_http_client),
) -> SharedIdClient:
    """
    SharedId-клиент для текущего запроса.

    Cookie браузера пробрасываются в sync-запрос (аналог ``withCredentials``).
    """
    return SharedIdClient(
        url=settings.sharedid_url,
        client=http_client,
        cookies=request.cookies,
    )
