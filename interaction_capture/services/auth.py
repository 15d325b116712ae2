"""
Authentication service - admin JWT tokens and password hashing.

Features:
- Password hashing with bcrypt
- JWT access token generation and validation
- Bootstrap of the first admin account from settings
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from interaction_capture.config import get_settings
from interaction_capture.models.admin_user import AdminUser

logger = logging.getLogger(__name__)

# JWT settings
ALGORITHM = "HS256"


class TokenData(BaseModel):
    """Token payload data"""
    admin_id: int
    email: str
    exp: datetime


def get_password_hash(password: str) -> str:
    """Hash password using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError as e:
        logger.error("Password verification failed: %s", e)
        return False


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=get_settings().ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(
    admin_id: int,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token.

    Args:
        admin_id: Admin user ID to encode
        email: Admin email
        expires_delta: Custom expiration time (default from settings)

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or access_token_lifetime())

    to_encode = {
        "sub": str(admin_id),
        "email": email,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(to_encode, get_settings().SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and validate JWT access token.

    Returns:
        TokenData if valid, None if invalid
    """
    try:
        payload = jwt.decode(token, get_settings().SECRET_KEY, algorithms=[ALGORITHM])

        admin_id = int(payload.get("sub"))
        email = payload.get("email")
        exp_raw = payload.get("exp")
        if exp_raw is None:
            return None
        exp = datetime.fromtimestamp(float(exp_raw), tz=timezone.utc)

        if not admin_id or not email:
            return None

        return TokenData(admin_id=admin_id, email=email, exp=exp)

    except JWTError as e:
        logger.debug("JWT decode error: %s", e)
        return None
    except (ValueError, TypeError) as e:
        logger.debug("Token payload error: %s", e)
        return None


def is_token_expired(token_data: TokenData) -> bool:
    """Check if token is expired."""
    exp = token_data.exp
    if exp.tzinfo is None:
        exp = exp.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) > exp


async def authenticate_admin(db: AsyncSession, email: str, password: str) -> Optional[AdminUser]:
    """Return the active admin matching the credentials, else None."""
    result = await db.execute(
        select(AdminUser).where(AdminUser.email == email.strip().lower())
    )
    admin = result.scalar_one_or_none()
    if not admin or not verify_password(password, admin.password_hash):
        return None
    return admin


async def ensure_bootstrap_admin(db: AsyncSession) -> Optional[AdminUser]:
    """Create the admin named by BOOTSTRAP_ADMIN_EMAIL if it does not exist yet."""
    settings = get_settings()
    if not settings.BOOTSTRAP_ADMIN_EMAIL or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None

    email = settings.BOOTSTRAP_ADMIN_EMAIL.strip().lower()
    result = await db.execute(select(AdminUser).where(AdminUser.email == email))
    admin = result.scalar_one_or_none()
    if admin:
        return admin

    admin = AdminUser(
        email=email,
        name=email.split("@")[0],
        password_hash=get_password_hash(settings.BOOTSTRAP_ADMIN_PASSWORD),
        is_active=True,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logger.info("Bootstrap admin created: %s", email)
    return admin
