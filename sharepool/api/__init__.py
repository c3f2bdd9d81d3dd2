"""API router aggregation."""

from fastapi import APIRouter

from sharepool.api.auth import router as auth_router
from sharepool.api.contributions import router as contributions_router
from sharepool.api.distributions import router as distributions_router
from sharepool.api.health import router as health_router
from sharepool.api.holders import router as holders_router
from sharepool.api.kpi import router as kpi_router
from sharepool.api.ledger import router as ledger_router
from sharepool.api.referrals import router as referrals_router
from sharepool.api.tiers import router as tiers_router
from sharepool.api.withdrawals import router as withdrawals_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(contributions_router)
api_router.include_router(holders_router)
api_router.include_router(kpi_router)
api_router.include_router(distributions_router)
api_router.include_router(withdrawals_router)
api_router.include_router(tiers_router)
api_router.include_router(ledger_router)
api_router.include_router(referrals_router)

__all__ = ["api_router"]
