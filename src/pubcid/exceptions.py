"""
═══════════════════════════════════════════════════════════════════════════════
PubCid — Иерархия доменных ошибок (Custom Exception Hierarchy)
═══════════════════════════════════════════════════════════════════════════════

Базовый класс ``PubCidError``. Ни одна из ошибок не доходит до хоста
из сабмодуля: sync-клиент ловит их и логирует.
HTTP-маппинг кодов выполняется в ``pubcid.main:pubcid_error_handler``.
"""


class PubCidError(Exception):
    """
    Базовое исключение для всех доменных ошибок PubCid.

    Атрибуты
    ────────
        message (str):  Описание ошибки. Передаётся клиенту в JSON.
        code (str):     Строковый код. Используется для маппинга на HTTP-статус.
        details (dict): Дополнительные данные (url, status и т.д.).
    """

    def __init__(
        self,
        message: str,
        code: str = "PUBCID_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class SyncTransportError(PubCidError):
    """SharedId недоступен или вернул не-2xx статус: 502 Bad Gateway."""

    def __init__(self, message: str = "SharedId request failed", details: dict | None = None):
        super().__init__(message, code="PUBCID_SYNC_TRANSPORT", details=details)


class SyncResponseError(PubCidError):
    """Тело ответа SharedId не разбирается: 502 Bad Gateway."""

    def __init__(self, message: str = "Malformed SharedId response", details: dict | None = None):
        super().__init__(message, code="PUBCID_SYNC_RESPONSE", details=details)


class CookieStorageError(PubCidError):
    """Сохранённая cookie повреждена: 400 Bad Request."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            message=f"Cookie {name} is unreadable: {reason}",
            code="PUBCID_COOKIE_ERROR",
            details={"cookie": name},
        )


__all__ = [
    "PubCidError",
    "SyncTransportError",
    "SyncResponseError",
    "CookieStorageError",
]
