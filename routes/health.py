from fastapi import APIRouter
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

@router.get("/")
async def health_check():
    logger.debug("health check")
    app_cfg = get_settings().app
    return {"status": "healthy", "app": app_cfg.name, "env": app_cfg.env}
