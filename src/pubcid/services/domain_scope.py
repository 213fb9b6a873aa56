"""
pubcid/services/domain_scope.py — Определение самого широкого cookie-домена.

Браузер отказывает в записи cookie на public suffix (``com``, ``co.uk``),
поэтому допустимый домен ищется эмпирически: пробная cookie пишется
на всё более короткие суффиксы hostname, пока запись не перестанет
читаться обратно.
"""

from __future__ import annotations

import logging
import time

from pubcid.storage import EXPIRED, CookieStorage

logger = logging.getLogger(__name__)


def resolve_widest_cookie_domain(hostname: str, storage: CookieStorage) -> str | None:
    """
    Возвращает самый широкий домен, на который удалось записать cookie.

    Алгоритм:
        1. Разбивает hostname на метки.
        2. Для каждого суффикса, от полного hostname к короткому,
           пишет ``_gd<ms>=1`` с этим доменом и читает обратно.
        3. Успех — удаляет пробную cookie и запоминает суффикс.
        4. Неудача — возвращает последний успешный суффикс.

    Returns:
        Домен или ``None``, если hostname пустой или не удалась даже
        запись на полный hostname.
    """
    if not hostname or not hostname.strip("."):
        logger.debug("Cookie domain probe skipped: empty hostname")
        return None

    labels = hostname.strip(".").lower().split(".")
    cookie_name = f"_gd{int(time.time() * 1000)}"
    top_domain: str | None = None

    for i in range(len(labels)):
        next_domain = ".".join(labels[i:])

        storage.set_cookie(cookie_name, "1", None, None, next_domain)

        if storage.get_cookie(cookie_name) != "1":
            logger.debug("Cookie domain probe stopped at %s", next_domain)
            return top_domain

        storage.set_cookie(cookie_name, "", EXPIRED, None, next_domain)
        top_domain = next_domain

    return top_domain
