"""
Sharepool - Tiered Equity & Quarterly Profit Distribution

Main FastAPI application with:
- Role-based authentication (admin/accountant)
- Contribution recording and approval
- KPI scoring
- Quarterly profit distribution, payments and withdrawals
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from sqlalchemy import select

from sharepool import __version__
from sharepool.api import api_router
from sharepool.auth.middleware import AuthMiddleware
from sharepool.config import settings
from sharepool.db import get_db_context
from sharepool.models import User, UserRole
from sharepool.services.tiers import seed_default_tiers
from sharepool.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the admin account if no admin exists
    - Seeds the default tier table when it is empty
    """
    logger.info("Starting Sharepool...")

    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN)
        )
        admin = result.scalars().first()

        if not admin:
            logger.info("Creating admin account...")
            db.add(User(
                username=settings.admin_username,
                password_hash=hash_password(settings.admin_password),
                role=UserRole.ADMIN,
                display_name="Administrator",
                is_active=True,
            ))
            logger.info(f"Admin account created: {settings.admin_username}")

        await seed_default_tiers(db)

    logger.info("Sharepool started successfully!")

    yield

    logger.info("Shutting down Sharepool...")


# Create FastAPI application
app = FastAPI(
    title="Sharepool",
    description="Tiered equity and quarterly profit distribution engine",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(AuthMiddleware)

app.include_router(api_router)  # /api/* endpoints


@app.get("/", include_in_schema=False)
async def root():
    """Redirect root to the health endpoint."""
    return RedirectResponse(url="/api/health", status_code=302)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sharepool.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
