"""
Operator login / logout.

The JWT travels in an httpOnly cookie; the API never returns it in a body.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharepool.auth.dependencies import get_current_user, get_current_user_optional
from sharepool.auth.jwt import COOKIE_NAME, create_access_token
from sharepool.config import settings
from sharepool.db import get_db
from sharepool.models import AuditAction, User, UserRole
from sharepool.schemas.auth import LoginRequest, LoginResponse, OperatorResponse
from sharepool.utils.audit import get_client_ip, log_action
from sharepool.utils.password import hash_password, needs_rehash, verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])

_COOKIE_FLAGS = {"httponly": True, "samesite": "lax"}


def _set_session_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_access_token(user.id, user.role.value),
        secure=settings.is_production,
        max_age=settings.jwt_expire_hours * 3600,
        **_COOKIE_FLAGS,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await db.scalar(select(User).where(User.username == credentials.username))

    # Same answer for unknown user and wrong password
    if user is None or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(credentials.password)
    user.last_active_at = datetime.now(timezone.utc)
    _set_session_cookie(response, user)

    await log_action(
        db,
        user_id=user.id,
        action=AuditAction.LOGIN,
        target_type="user",
        target_id=user.id,
        ip_address=get_client_ip(request),
    )
    return LoginResponse(success=True, message="Login successful", role=user.role.value)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user_optional),
):
    if current_user is not None:
        await log_action(
            db,
            user_id=current_user.id,
            action=AuditAction.LOGOUT,
            target_type="user",
            target_id=current_user.id,
            ip_address=get_client_ip(request),
        )
    response.delete_cookie(key=COOKIE_NAME, secure=settings.is_production, **_COOKIE_FLAGS)
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=OperatorResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Who is logged in, and which back-office actions they may take."""
    return OperatorResponse(
        id=current_user.id,
        username=current_user.username,
        display_name=current_user.display_name,
        role=current_user.role.value,
        can_process_finance=current_user.role in (UserRole.ADMIN, UserRole.ACCOUNTANT),
        can_configure_tiers=current_user.role == UserRole.ADMIN,
    )
