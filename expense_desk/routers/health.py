from fastapi import APIRouter, Depends

from expense_desk.core.config import Settings
from expense_desk.services.caller import get_app_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health(settings: Settings = Depends(get_app_settings)):
    return {"status": "ok", "version": settings.version}
