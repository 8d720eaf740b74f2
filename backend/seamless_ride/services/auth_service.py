"""
Authentication service handling user registration and login.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from seamless_ride.core.config import Settings
from seamless_ride.core.logging import get_logger
from seamless_ride.core.security import SessionData, create_session_token, hash_password, verify_password
from seamless_ride.models.user import User
from seamless_ride.schemas.user import UserCreate, UserLogin

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password.
    Raises 409 if the matric number is already registered.
    """
    result = await db.execute(select(User).where(User.matric_number == user_data.matric_number))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="matric_number_exists", matric_number=user_data.matric_number)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Matric number already registered",
        )

    user = User(
        full_name=user_data.full_name,
        matric_number=user_data.matric_number,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id)
    return user


async def authenticate_user(
    db: AsyncSession,
    settings: Settings,
    login_data: UserLogin,
) -> tuple[User, str, SessionData]:
    """
    Check credentials and open a session.
    Raises 401 if credentials are invalid, 403 if the account is deactivated.
    """
    result = await db.execute(select(User).where(User.matric_number == login_data.matric_number))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", matric_number=login_data.matric_number)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token, session = create_session_token(settings, user.id)
    logger.info("user_logged_in", user_id=user.id)
    return user, token, session


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user
