"""
pubcid/models/submodule.py — Параметры сабмодуля pubCommonId.

Хост передаёт ``{create, extend, pixelUrl}``; значения по умолчанию
фиксируются здесь и валидируются один раз на границе.
"""

from pydantic import Field

from pubcid.models.common import PubCidBase


class SubmoduleConfig(PubCidBase):
    """Конфигурация сабмодуля."""
    create: bool = Field(default=True, description="Allow generating a new identifier")
    extend: bool = Field(default=False, description="Refresh/sync a stored identifier")
    pixel_url: str | None = Field(
        default=None,
        alias="pixelUrl",
        examples=["https://pixel.example.com/px"],
    )
