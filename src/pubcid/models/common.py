"""
pubcid/models/common.py — Базовые типы PubCid.
"""

from pydantic import BaseModel


class PubCidBase(BaseModel):
    """Базовая Pydantic-модель для PubCid-схем."""

    model_config = {"str_strip_whitespace": True, "populate_by_name": True}
