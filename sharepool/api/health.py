"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool import __version__
from sharepool.db import get_db
from sharepool.models import BusinessTierConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    return {"status": "healthy", "service": "sharepool", "version": __version__}


@router.get("/ready")
async def readiness_check(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Ready once the database answers and the tier table is seeded.

    Without tiers every contribution would fail with a configuration error.
    """
    try:
        tiers = await db.scalar(
            select(func.count()).select_from(BusinessTierConfig).where(BusinessTierConfig.is_active.is_(True))
        )
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": f"error: {e}", "tiers": 0}

    if not tiers:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": "connected", "tiers": 0}
    return {"status": "ready", "database": "connected", "tiers": tiers}


@router.get("/live")
async def liveness_check():
    return {"status": "alive"}
