"""
pubcid/api/health.py — Health check эндпоинт PubCid-сервиса.

GET /api/v1/health — статус сервиса и настроенный SharedId endpoint.
"""

from fastapi import APIRouter, Depends

from pubcid import __version__
from pubcid.config import PubCidSettings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check PubCid-сервиса")
async def health(settings: PubCidSettings = Depends(get_settings)):
    """Сервис не держит соединений, поэтому проверка — только конфигурация."""
    return {
        "status": "healthy",
        "service": "pubcid",
        "version": __version__,
        "sharedid_url": settings.sharedid_url,
        "device_access": settings.device_access,
    }
