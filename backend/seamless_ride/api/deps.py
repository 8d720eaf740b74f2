"""
FastAPI dependencies: the service container, per-request DB sessions and
the caller's session.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from seamless_ride.core.security import SessionData, decode_session_token
from seamless_ride.services.container import Services

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_db(services: Services = Depends(get_services)) -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for CRUD routes; commits on success, rolls back on error."""
    async with services.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    services: Services = Depends(get_services),
) -> Optional[SessionData]:
    """Session from the Bearer header, else from the session cookie; None if absent or invalid."""
    settings = services.settings
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    return decode_session_token(settings, token)


async def get_optional_user_id(
    session: Optional[SessionData] = Depends(get_optional_session),
) -> Optional[int]:
    return session.user_id if session else None
