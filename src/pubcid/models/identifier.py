"""
pubcid/models/identifier.py — Запись идентификатора и ответы сабмодуля.

    • IdentifierRecord — пара ``{id, third}``, хранимая в cookie
    • SyncResponse     — JSON-ответ SharedId ``{"sharedId": "..."}``
    • IdResponse       — результат get_id / extend_id ``{id?, callback?}``
    • CookieRecord     — одна cookie в хранилище
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Union

from pydantic import Field

from pubcid.models.common import PubCidBase
from pubcid.models.enums import SameSite


class IdentifierRecord(PubCidBase):
    """
    Запись идентификатора браузера.

    ``id`` — локальный UUID, не меняется после создания.
    ``third`` — значение SharedId; выставляется только sync-клиентом
    и никогда не равно opt-out значению.
    """
    id: Optional[str] = None
    third: Optional[str] = None


class SyncResponse(PubCidBase):
    """Ответ SharedId."""
    shared_id: str = Field(..., alias="sharedId")


OnComplete = Callable[[IdentifierRecord], Union[Awaitable[None], None]]
IdCallback = Callable[..., Awaitable[None]]


class IdResponse(PubCidBase):
    """Ответ get_id / extend_id: новый id и/или callback для хоста."""
    id: Union[str, IdentifierRecord, None] = None
    callback: Optional[IdCallback] = None


class CookieRecord(PubCidBase):
    """Cookie в хранилище (name, value, expires, domain, SameSite)."""
    name: str
    value: str
    expires: Optional[str] = None
    domain: Optional[str] = None
    same_site: Optional[SameSite] = None
