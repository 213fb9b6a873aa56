"""
pubcid/adapters/pixel.py — Pixel-уведомления.

``build_notifier`` только строит URL; побочный эффект (GET-пиксель)
выполняет возвращённая функция без аргументов.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import httpx

logger = logging.getLogger(__name__)

Notifier = Callable[[], Awaitable[None]]


def pixel_target(pixel_url: str, id: str | None = "") -> str:
    """Выставляет (или перезаписывает) параметр ``id=pubcid:<id>``."""
    parts = urlsplit(pixel_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "id"]
    # pubcid заодно работает как cache buster
    query.append(("id", f"pubcid:{id or ''}"))
    return urlunsplit(parts._replace(query=urlencode(query, quote_via=quote)))


async def trigger_pixel(url: str, client: httpx.AsyncClient | None = None) -> None:
    """Одноразовый GET-пиксель. Ошибки транспорта только логируются."""
    try:
        if client is not None:
            await client.get(url)
        else:
            async with httpx.AsyncClient() as own_client:
                await own_client.get(url)
    except httpx.HTTPError as exc:
        logger.info("PubcId: pixel %s failed: %s", url, exc)


def build_notifier(
    pixel_url: str | None,
    id: str | None = "",
    client: httpx.AsyncClient | None = None,
) -> Notifier | None:
    """
    Возвращает функцию, которая вызывает ``pixel_url`` с id в query.

    Args:
        pixel_url: Базовый URL пикселя; пустой → уведомления нет.
        id: Идентификатор, попадающий в ``id=pubcid:<id>``.
        client: Общий httpx-клиент (иначе создаётся на каждый вызов).

    Returns:
        Асинхронная функция без аргументов или ``None``.
    """
    if not pixel_url:
        return None

    target_url = pixel_target(pixel_url, id)

    async def notify() -> None:
        await trigger_pixel(target_url, client)

    return notify
