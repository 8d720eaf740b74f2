"""
Authentication endpoints: register, login, logout and current user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from seamless_ride.api.deps import get_db, get_optional_session, get_services
from seamless_ride.core.security import SessionData
from seamless_ride.schemas.user import MeResponse, SessionResponse, UserCreate, UserLogin, UserResponse
from seamless_ride.services.auth_service import authenticate_user, get_user, register_user
from seamless_ride.services.container import Services

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    user = await register_user(db, user_data)
    return user


@router.post("/login", response_model=SessionResponse)
async def login(
    login_data: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Authenticate; the session token is returned and also set as an httponly cookie."""
    settings = services.settings
    user, token, session = await authenticate_user(db, settings, login_data)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
    )
    return SessionResponse(
        access_token=token,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(response: Response, services: Services = Depends(get_services)):
    response.delete_cookie(services.settings.SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=MeResponse)
async def me(
    session: Optional[SessionData] = Depends(get_optional_session),
    db: AsyncSession = Depends(get_db),
):
    """Current user, or {"user": null} without a valid session."""
    if session is None:
        return MeResponse(user=None)
    user = await get_user(db, session.user_id)
    return MeResponse(user=UserResponse.model_validate(user) if user else None)
