"""
pubcid/adapters/sharedid_client.py — Клиент SharedId (Third-Party Sync).

Один асинхронный GET на sync endpoint с credentials. Ответ
``{"sharedId": "..."}`` обогащает IdentifierRecord полем ``third``,
кроме opt-out значения (26 нулей), которое отбрасывается.

Graceful degradation: ошибки транспорта и разбора только логируются,
повторов нет (повтор случится на следующем extend, пока ``third`` пуст).
Параллельные sync не дедуплицируются: каждый вызов — свой запрос.
"""

from __future__ import annotations

import inspect
import logging
from typing import Mapping

import httpx
from pydantic import ValidationError as PydanticValidationError

from pubcid.exceptions import PubCidError, SyncResponseError, SyncTransportError
from pubcid.models.identifier import IdentifierRecord, OnComplete, SyncResponse

logger = logging.getLogger(__name__)

SHAREDID_URL = "https://id.sharedid.org/id"
SHAREDID_OPT_OUT_VALUE = "00000000000000000000000000"


class SharedIdClient:
    """
    Клиент SharedId.

    ``cookies`` — cookie браузера, отправляемые вместе с запросом
    (аналог ``withCredentials``); хост передаёт их из входящего запроса.
    """

    def __init__(
        self,
        url: str = SHAREDID_URL,
        client: httpx.AsyncClient | None = None,
        cookies: Mapping[str, str] | None = None,
    ) -> None:
        self.url = url
        self._client = client
        self._cookies = dict(cookies or {})

    def with_cookies(self, cookies: Mapping[str, str]) -> "SharedIdClient":
        """Копия клиента с cookie конкретного браузера."""
        return SharedIdClient(self.url, self._client, cookies)

    async def _get(self) -> httpx.Response:
        # cookie передаются заголовком: per-request cookies в httpx устарели
        headers = {}
        if self._cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in self._cookies.items())
        if self._client is not None:
            return await self._client.get(self.url, headers=headers)
        async with httpx.AsyncClient() as client:
            return await client.get(self.url, headers=headers)

    async def fetch_shared_id(self) -> SyncResponse:
        """
        Запрашивает SharedId.

        Raises:
            SyncTransportError: сеть недоступна или статус не 2xx.
            SyncResponseError: тело пустое, не JSON или без ``sharedId``.
        """
        try:
            response = await self._get()
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SyncTransportError(
                f"SharedId request failed: {exc}", details={"url": self.url}
            ) from exc

        body = response.text
        if not body:
            raise SyncResponseError("Empty SharedId response", details={"url": self.url})
        try:
            return SyncResponse.model_validate_json(body)
        except PydanticValidationError as exc:
            raise SyncResponseError(
                f"Malformed SharedId response: {exc.errors()[0]['msg']}",
                details={"url": self.url},
            ) from exc

    async def sync(self, record: IdentifierRecord, on_complete: OnComplete | None = None) -> None:
        """
        Обогащает ``record`` значением SharedId и вызывает ``on_complete``.

        ``on_complete(record)`` вызывается для любого разобранного ответа,
        включая opt-out; при ошибке транспорта или разбора — не вызывается.
        """
        try:
            result = await self.fetch_shared_id()
        except SyncTransportError as exc:
            logger.info("SharedId: failed to get id (%s)", exc.message)
            return
        except PubCidError as exc:
            logger.error("SharedId: %s", exc.message)
            return

        if result.shared_id != SHAREDID_OPT_OUT_VALUE:
            logger.info("SharedId: Generated SharedId: %s", result.shared_id)
            record.third = result.shared_id
        else:
            logger.info("SharedId: opted out, record left without third")

        if on_complete is not None:
            outcome = on_complete(record)
            if inspect.isawaitable(outcome):
                await outcome
