"""
Authentication middleware for FastAPI.

Provides the dependency that gates every admin endpoint:
- get_current_admin: Requires a valid JWT token for an active admin
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from interaction_capture.database import get_db
from interaction_capture.models.admin_user import AdminUser
from interaction_capture.services.auth import decode_access_token, is_token_expired

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> AdminUser:
    """
    Get current authenticated admin from JWT token.

    Usage:
        @router.get("/protected")
        async def protected_route(admin: AdminUser = Depends(get_current_admin)):
            return {"admin_id": admin.id}

    Raises:
        HTTPException 401: If token missing, invalid or expired
        HTTPException 403: If admin not found or inactive
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_access_token(credentials.credentials)
    if not token_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if is_token_expired(token_data):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(
        select(AdminUser).where(AdminUser.id == token_data.admin_id)
    )
    admin = result.scalar_one_or_none()

    if not admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin not found"
        )

    if not admin.is_active:
        logger.warning("Deactivated admin attempted access: id=%s", admin.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is deactivated"
        )

    return admin
