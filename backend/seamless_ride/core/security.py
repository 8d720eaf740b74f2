"""
Password hashing and session tokens.

A session is an explicit value (user id + expiry) signed into a JWT. The token
is opaque to clients; it travels either as a Bearer header or as an httponly
cookie set at login.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from seamless_ride.core.config import Settings
from seamless_ride.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionData:
    user_id: int
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_session_token(
    settings: Settings,
    user_id: int,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, SessionData]:
    expires_at = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "exp": expires_at}
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    # exp is serialized with second precision
    session = SessionData(user_id=user_id, expires_at=expires_at.replace(microsecond=0))
    return token, session


def decode_session_token(settings: Settings, token: Optional[str]) -> Optional[SessionData]:
    """Return the session carried by the token, or None if missing, invalid or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = int(payload["sub"])
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except jwt.ExpiredSignatureError:
        logger.info("session_expired")
        return None
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
        logger.warning("session_invalid", error=str(e))
        return None
    return SessionData(user_id=user_id, expires_at=expires_at)
