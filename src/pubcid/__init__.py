"""
pubcid — Publisher Common ID.

Первичный псевдонимный идентификатор браузера (``_pubcid``) для bid-запросов
с опциональным обогащением через SharedId (``third``).
"""

__version__ = "0.3.0"
