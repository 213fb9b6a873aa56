"""
pubcid/api/pubcid.py — Эндпоинт первичного идентификатора.

GET /api/v1/pubcid — хост для сабмодуля pubCommonId:
    1. Читает сохранённую запись из cookie запроса.
    2. Нет записи → ``get_id``; есть запись → ``extend_id``.
    3. Новый id сразу уходит в ``Set-Cookie``.
    4. Callback (SharedId + pixel) выполняется с ``IdentifierStore.save``
       в роли ``on_complete`` — обогащённая запись тоже попадает в cookie.
    5. Возвращает ``decode(record)``.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response

from pubcid.adapters.sharedid_client import SharedIdClient
from pubcid.config import PubCidSettings, get_settings
from pubcid.dependencies import get_http_client, get_sync_client
from pubcid.models.identifier import IdentifierRecord
from pubcid.page import PageContext
from pubcid.services.lifecycle import PubCommonIdSubmodule
from pubcid.storage import IdentifierStore, ResponseCookieStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pubcid"])


@router.get(
    "/pubcid",
    summary="Получить (создать/продлить) идентификатор браузера",
)
async def resolve_pubcid(
    request: Request,
    response: Response,
    settings: PubCidSettings = Depends(get_settings),
    sync_client: SharedIdClient = Depends(get_sync_client),
    http_client: httpx.AsyncClient | None = Depends(get_http_client),
):
    """Возвращает ``{"pubcid": {"id": ..., "third": ...}}`` и обновляет cookie."""
    storage = ResponseCookieStorage(request.cookies, response, settings.cookie_domain)
    store = IdentifierStore(
        storage,
        cookie_name=settings.cookie_name,
        expires_days=settings.cookie_expires_days,
        domain=settings.cookie_domain,
    )
    context = PageContext(
        hostname=request.url.hostname or "",
        device_access=settings.device_access,
        storage=storage,
    )
    submodule = PubCommonIdSubmodule(context, sync_client=sync_client, http_client=http_client)
    config = settings.submodule_config()

    record = store.load()
    if record is None:
        result = submodule.get_id(config)
        if isinstance(result.id, str):
            record = IdentifierRecord(id=result.id)
            if settings.device_access:
                store.save(record)
    else:
        result = submodule.extend_id(config, record)

    def on_complete(enriched: IdentifierRecord) -> None:
        nonlocal record
        if enriched.id is None and enriched.third is None:
            return
        # без доступа к устройству ничего не сохраняется
        if settings.device_access:
            store.save(enriched)
        record = enriched

    if result is not None and result.callback is not None:
        await result.callback(on_complete)

    decoded = submodule.decode(record)
    if decoded is None:
        return {"pubcid": None}
    return {"pubcid": decoded["pubcid"].model_dump(exclude_none=True)}
