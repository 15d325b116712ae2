"""Auth API endpoints"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime, timezone
import logging

from interaction_capture.database import get_db
from interaction_capture.models.admin_user import AdminUser
from interaction_capture.schemas.auth import AdminInfo, AuthResponse, LoginRequest
from interaction_capture.services.auth import (
    access_token_lifetime,
    create_access_token,
    verify_password,
)
from interaction_capture.middleware.auth import get_current_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password.

    Returns JWT token on success.
    """
    result = await db.execute(
        select(AdminUser).where(AdminUser.email == payload.email.lower())
    )
    admin = result.scalar_one_or_none()

    if not admin or not verify_password(payload.password, admin.password_hash):
        logger.info("Failed admin login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )

    admin.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(admin)

    access_token = create_access_token(admin.id, admin.email)
    logger.info("Admin logged in: %s (id=%s)", admin.email, admin.id)

    return AuthResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=int(access_token_lifetime().total_seconds()),
        admin=AdminInfo.model_validate(admin),
    )


@router.get("/me", response_model=AdminInfo)
async def get_me(admin: AdminUser = Depends(get_current_admin)):
    """Current authenticated admin. Requires valid JWT token."""
    return AdminInfo.model_validate(admin)
