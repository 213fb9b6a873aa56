"""
pubcid/page.py — Контекст страницы (Page Context).

Что сабмодуль знает о среде исполнения:
    • внешние провайдеры идентификатора, выставленные страницей
      (например, собственный ``PublisherCommonId`` издателя);
    • разрешено ли постоянное хранение на устройстве;
    • hostname текущего origin и cookie-хранилище.

Поиск провайдера — явный типизированный lookup, возвращающий
``ExternalIdProvider | None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pubcid.storage import CookieStorage

logger = logging.getLogger(__name__)

PUB_COMMON_ID = "PublisherCommonId"


@runtime_checkable
class ExternalIdProvider(Protocol):
    """Провайдер идентификатора, подключённый самой страницей."""

    def get_id(self) -> Any: ...


@dataclass
class PageContext:
    """Среда, в которой работает сабмодуль."""

    hostname: str = ""
    device_access: bool = True
    storage: CookieStorage | None = None
    providers: dict[str, Any] = field(default_factory=dict)

    def find_provider(self, name: str = PUB_COMMON_ID) -> ExternalIdProvider | None:
        """Возвращает провайдера ``name``, если он есть и умеет ``get_id()``."""
        candidate = self.providers.get(name)
        if candidate is None:
            return None
        try:
            usable = callable(getattr(candidate, "get_id", None))
        except Exception as exc:
            logger.debug("Page global %s is malformed, ignoring: %s", name, exc)
            return None
        if not usable:
            logger.debug("Page global %s has no callable get_id, ignoring", name)
            return None
        return candidate

    def has_device_access(self) -> bool:
        return self.device_access
