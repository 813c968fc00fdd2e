from fastapi import APIRouter, HTTPException
from typing import Dict, Any
import time
import logging
from datetime import datetime, timezone

from mathchat.core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "environment": "production" if not settings.DEBUG else "development",
        "model": settings.GEMINI_MODEL,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: the proxy is useless without an upstream key"""
    if not settings.GEMINI_API_KEY:
        logger.warning("Readiness check failed: GEMINI_API_KEY missing")
        raise HTTPException(status_code=503, detail="Service not ready: upstream API key not configured")
    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Liveness probe"""
    return {"status": "alive", "timestamp": time.time()}
