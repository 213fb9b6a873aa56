"""
═══════════════════════════════════════════════════════════════════════════════
PubCid — Cookie-хранилище (Cookie Storage)
═══════════════════════════════════════════════════════════════════════════════

Сабмодуль не управляет механикой cookie, он только решает, *что* записать
и *на какой домен*. Здесь:
    • ``CookieStorage``         — протокол хранилища (get_cookie / set_cookie);
    • ``CookieJar``             — in-memory хранилище с браузерной семантикой
                                  доменов (отказ в записи на public suffix);
    • ``ResponseCookieStorage`` — хранилище поверх запроса/ответа FastAPI;
    • ``IdentifierStore``       — чтение/запись IdentifierRecord и legacy
                                  cookie ``sharedid``.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Iterable, Mapping, Protocol, runtime_checkable
from urllib.parse import quote, unquote

from fastapi import Response
from pydantic import ValidationError as PydanticValidationError

from pubcid.exceptions import CookieStorageError
from pubcid.models.enums import SameSite
from pubcid.models.identifier import CookieRecord, IdentifierRecord

logger = logging.getLogger(__name__)

SHAREDID_COOKIE_NAME = "sharedid"
SHAREDID_COOKIE_EXPIRATION = 2419200000  # 28 дней в миллисекундах
EXPIRED = "Thu, 01 Jan 1970 00:00:01 GMT"

DEFAULT_PUBLIC_SUFFIXES = frozenset({
    "co.uk", "org.uk", "ac.uk", "com.au", "net.au", "co.jp", "com.br",
    "github.io", "herokuapp.com", "appspot.com",
})


def expires_in(milliseconds: int, now: float | None = None) -> str:
    """UTC-строка срока жизни cookie: ``now + milliseconds``."""
    current = time.time() if now is None else now
    moment = datetime.fromtimestamp(current, tz=timezone.utc) + timedelta(milliseconds=milliseconds)
    return format_datetime(moment, usegmt=True)


def is_expired(expires: str | None, now: float | None = None) -> bool:
    if not expires:
        return False
    try:
        moment = parsedate_to_datetime(expires)
    except (TypeError, ValueError):
        return False
    current = time.time() if now is None else now
    return moment.timestamp() <= current


@runtime_checkable
class CookieStorage(Protocol):
    """Протокол cookie-хранилища, которым пользуется сабмодуль."""

    def get_cookie(self, name: str) -> str | None: ...

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: str | None = None,
        same_site: SameSite | str | None = None,
        domain: str | None = None,
    ) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# In-memory хранилище с семантикой браузера
# ═══════════════════════════════════════════════════════════════════════════════

class CookieJar:
    """
    Cookie jar одного origin.

    Запись с ``domain`` принимается, только если домен совпадает с hostname
    или является его родителем и при этом не является public suffix
    (однометочный домен вроде ``com`` или домен из ``public_suffixes``).
    Отклонённая запись молча игнорируется, как в браузере.
    """

    supports_domain_probe = True

    def __init__(
        self,
        hostname: str,
        public_suffixes: Iterable[str] = DEFAULT_PUBLIC_SUFFIXES,
        clock=time.time,
    ) -> None:
        self.hostname = hostname.lower()
        self._public_suffixes = frozenset(s.lower() for s in public_suffixes)
        self._clock = clock
        self._cookies: dict[tuple[str, str], CookieRecord] = {}

    def _accepts(self, domain: str) -> bool:
        if domain == self.hostname:
            return True
        if not self.hostname.endswith("." + domain):
            return False
        return "." in domain and domain not in self._public_suffixes

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: str | None = None,
        same_site: SameSite | str | None = None,
        domain: str | None = None,
    ) -> None:
        scope = (domain or self.hostname).lstrip(".").lower()
        if not self._accepts(scope):
            logger.debug("Cookie %s rejected for domain %s on %s", name, scope, self.hostname)
            return
        key = (name, scope)
        if is_expired(expires, self._clock()):
            self._cookies.pop(key, None)
            return
        self._cookies[key] = CookieRecord(
            name=name,
            value=value,
            expires=expires,
            domain=scope,
            same_site=SameSite(same_site) if same_site else None,
        )

    def get_cookie(self, name: str) -> str | None:
        now = self._clock()
        visible = [
            c for (n, _), c in self._cookies.items()
            if n == name and not is_expired(c.expires, now)
        ]
        if not visible:
            return None
        # самый специфичный домен побеждает
        visible.sort(key=lambda c: len(c.domain or ""), reverse=True)
        return visible[0].value

    def cookies(self) -> list[CookieRecord]:
        return list(self._cookies.values())


# ═══════════════════════════════════════════════════════════════════════════════
# Хранилище поверх HTTP-запроса/ответа
# ═══════════════════════════════════════════════════════════════════════════════

class ResponseCookieStorage:
    """
    Читает cookie запроса, пишет ``Set-Cookie`` в ответ.

    Записи, сделанные за время обработки запроса, видны последующим
    ``get_cookie`` (удалённая cookie читается как ``None``).
    Домен записи не проверяется, поэтому пробовать на этом хранилище
    cookie-домен бессмысленно: ``supports_domain_probe = False``.
    """

    supports_domain_probe = False

    def __init__(
        self,
        request_cookies: Mapping[str, str],
        response: Response,
        default_domain: str | None = None,
    ) -> None:
        self._request_cookies = request_cookies
        self._response = response
        self._default_domain = default_domain or None
        self._pending: dict[str, str | None] = {}

    def get_cookie(self, name: str) -> str | None:
        if name in self._pending:
            return self._pending[name]
        return self._request_cookies.get(name)

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: str | None = None,
        same_site: SameSite | str | None = None,
        domain: str | None = None,
    ) -> None:
        samesite = SameSite(same_site).value.lower() if same_site else "lax"
        self._response.set_cookie(
            name,
            value,
            expires=expires,
            domain=domain or self._default_domain,
            samesite=samesite,
        )
        self._pending[name] = None if is_expired(expires) else value


# ═══════════════════════════════════════════════════════════════════════════════
# IdentifierRecord ↔ cookie
# ═══════════════════════════════════════════════════════════════════════════════

class IdentifierStore:
    """
    Хранение IdentifierRecord.

    Основная cookie (``_pubcid``) содержит URL-encoded JSON записи.
    Старые cookie с «голым» UUID читаются как ``{id: <значение>}``.
    ``third`` дополнительно кешируется в ``sharedid`` на 28 дней (SameSite=Lax).
    """

    def __init__(
        self,
        storage: CookieStorage,
        cookie_name: str = "_pubcid",
        expires_days: int = 365,
        domain: str | None = None,
    ) -> None:
        self.storage = storage
        self.cookie_name = cookie_name
        self.expires_days = expires_days
        self.domain = domain or None

    @staticmethod
    def parse(name: str, raw: str) -> IdentifierRecord:
        """Разбирает значение cookie в IdentifierRecord."""
        text = unquote(raw).strip()
        if not text.startswith("{"):
            return IdentifierRecord(id=text)
        try:
            return IdentifierRecord.model_validate(json.loads(text))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            raise CookieStorageError(name, str(exc)) from exc

    def load(self) -> IdentifierRecord | None:
        """Читает сохранённую запись; повреждённая cookie считается отсутствующей."""
        raw = self.storage.get_cookie(self.cookie_name)
        if not raw:
            return None
        try:
            return self.parse(self.cookie_name, raw)
        except CookieStorageError as exc:
            logger.warning("PubcId: ignoring stored value: %s", exc.message)
            return None

    def save(self, record: IdentifierRecord) -> None:
        """Пишет запись; подходит как ``on_complete`` для sync-клиента."""
        if record.id is None and record.third is None:
            return
        value = quote(record.model_dump_json(exclude_none=True), safe="")
        self.storage.set_cookie(
            self.cookie_name,
            value,
            expires_in(self.expires_days * 86400 * 1000),
            SameSite.LAX,
            self.domain,
        )
        if record.third:
            self.storage.set_cookie(
                SHAREDID_COOKIE_NAME,
                record.third,
                expires_in(SHAREDID_COOKIE_EXPIRATION),
                SameSite.LAX,
                self.domain,
            )
        logger.info("PubcId: stored %s", record.model_dump(exclude_none=True))
