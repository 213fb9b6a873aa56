"""
pubcid/services/lifecycle.py — Сабмодуль pubCommonId (жизненный цикл id).

Точки входа для хоста:
    • ``get_id``     — новый идентификатор + callback (SharedId + pixel);
    • ``decode``     — сохранённая запись → ``{"pubcid": record}``;
    • ``extend_id``  — продление/обогащение сохранённой записи;
    • ``domain_override`` — самый широкий cookie-домен для origin.

Если страница подключила собственный ``PublisherCommonId``, сабмодуль
полностью делегирует ему: get_id возвращает только его id, extend_id
ничего не делает.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping
from uuid import uuid4

import httpx

from pubcid.adapters.pixel import Notifier, build_notifier
from pubcid.adapters.sharedid_client import SharedIdClient
from pubcid.models.identifier import IdCallback, IdentifierRecord, IdResponse, OnComplete
from pubcid.models.submodule import SubmoduleConfig
from pubcid.page import PUB_COMMON_ID, PageContext
from pubcid.services.domain_scope import resolve_widest_cookie_domain

logger = logging.getLogger(__name__)

MODULE_NAME = "pubCommonId"

_ABSENT = object()


def _as_config(config: SubmoduleConfig | Mapping[str, Any] | None) -> SubmoduleConfig:
    if isinstance(config, SubmoduleConfig):
        return config
    return SubmoduleConfig.model_validate(dict(config or {}))


def _as_record(stored_id: IdentifierRecord | str) -> IdentifierRecord:
    # старые cookie хранят только строку id
    if isinstance(stored_id, IdentifierRecord):
        return stored_id
    return IdentifierRecord(id=stored_id)


class PubCommonIdSubmodule:
    """Логика идентификатора pubCommonId поверх PageContext и SharedId."""

    name = MODULE_NAME

    def __init__(
        self,
        context: PageContext | None = None,
        sync_client: SharedIdClient | None = None,
        http_client: httpx.AsyncClient | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.context = context or PageContext()
        self.sync_client = sync_client or SharedIdClient(client=http_client)
        self._http_client = http_client
        self._id_factory = id_factory or (lambda: str(uuid4()))

    # ═══════════════════════════════════════════════════════════════════════
    # Callback-и для хоста
    # ═══════════════════════════════════════════════════════════════════════

    def make_callback(self, pixel_url: str | None, id: str | None = "") -> Notifier | None:
        """Pixel-уведомление с ``id=pubcid:<id>`` или ``None`` без pixel_url."""
        return build_notifier(pixel_url, id, self._http_client)

    def _sync_and_notify(self, record: IdentifierRecord, notifier: Notifier | None) -> IdCallback:
        """Sync запускается первым, pixel — сразу следом, не дожидаясь ответа."""

        async def callback(on_complete: OnComplete | None = None) -> None:
            actions = [self.sync_client.sync(record, on_complete)]
            if notifier is not None:
                actions.append(notifier())
            await asyncio.gather(*actions)

        return callback

    @staticmethod
    def _notify_only(notifier: Notifier) -> IdCallback:
        async def callback(on_complete: OnComplete | None = None) -> None:
            await notifier()

        return callback

    def _provider_id(self) -> Any:
        provider = self.context.find_provider(PUB_COMMON_ID)
        if provider is None:
            return _ABSENT
        try:
            return provider.get_id()
        except Exception as exc:
            logger.debug("PubcId: %s.get_id() failed, using local id: %s", PUB_COMMON_ID, exc)
            return _ABSENT

    # ═══════════════════════════════════════════════════════════════════════
    # Контракт сабмодуля
    # ═══════════════════════════════════════════════════════════════════════

    def get_id(self, config: SubmoduleConfig | Mapping[str, Any] | None = None) -> IdResponse:
        """
        Получить идентификатор.

        Новый UUID создаётся, только если ``create`` включён и хранение
        на устройстве разрешено. Callback возвращается всегда.
        """
        config = _as_config(config)

        external = self._provider_id()
        if external is not _ABSENT:
            # страница ведёт свой pubcid — сохраняем его копию
            logger.info("PubcId: delegating to page %s", PUB_COMMON_ID)
            return IdResponse(id=None if external is None else str(external))

        new_id = None
        if config.create and self.context.has_device_access():
            new_id = self._id_factory()
        elif config.create:
            logger.info("PubcId: device access denied, no id created")

        record = IdentifierRecord(id=new_id)
        notifier = self.make_callback(config.pixel_url, new_id)
        return IdResponse(id=new_id, callback=self._sync_and_notify(record, notifier))

    def decode(
        self, value: IdentifierRecord | str | None
    ) -> dict[str, IdentifierRecord | str] | None:
        """Сохранённая запись → ``{"pubcid": value}`` для bid-запросов."""
        if value is None:
            return None
        result = {"pubcid": value}
        shown = value.model_dump(exclude_none=True) if isinstance(value, IdentifierRecord) else value
        logger.info("PubcId: Decoded value %s", shown)
        return result

    def extend_id(
        self,
        config: SubmoduleConfig | Mapping[str, Any] | None,
        stored_id: IdentifierRecord | str,
    ) -> IdResponse | None:
        """
        Продлить сохранённый идентификатор.

        Returns:
            ``None`` — страница ведёт свой pubcid или ``extend`` выключен;
            ``{callback}`` — pixel (уже есть ``third``) или sync + pixel;
            ``{id: stored_id}`` — уведомлять некого.
        """
        if self.context.find_provider(PUB_COMMON_ID) is not None:
            return None

        config = _as_config(config)
        if not config.extend:
            return None

        record = _as_record(stored_id)
        notifier = self.make_callback(config.pixel_url, record.id)
        if record.third:
            if notifier is None:
                return IdResponse(id=record)
            return IdResponse(callback=self._notify_only(notifier))
        return IdResponse(callback=self._sync_and_notify(record, notifier))

    def domain_override(self) -> str | None:
        """Самый широкий домен, на который можно писать cookie."""
        if self.context.storage is None:
            logger.warning("PubcId: no cookie storage, domain override skipped")
            return None
        if not getattr(self.context.storage, "supports_domain_probe", True):
            logger.debug("PubcId: cookie storage cannot be probed, domain override skipped")
            return None
        return resolve_widest_cookie_domain(self.context.hostname, self.context.storage)
