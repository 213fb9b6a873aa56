"""
pubcid.models — Модели данных PubCid.

Реэкспорт основных классов для удобства:
    from pubcid.models import IdentifierRecord, SubmoduleConfig
"""

from pubcid.models.enums import SameSite  # noqa: F401
from pubcid.models.identifier import (  # noqa: F401
    CookieRecord,
    IdCallback,
    IdentifierRecord,
    IdResponse,
    OnComplete,
    SyncResponse,
)
from pubcid.models.submodule import SubmoduleConfig  # noqa: F401
