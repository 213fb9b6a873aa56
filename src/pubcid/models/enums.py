"""
pubcid/models/enums.py — Перечисления PubCid.
"""

from enum import Enum


class SameSite(str, Enum):
    """Атрибут SameSite для cookie."""
    LAX = "Lax"
    STRICT = "Strict"
    NONE = "None"
