"""Identity and role context.

Users sign up and log in with the external identity provider, which issues
HS256 bearer tokens whose ``sub`` claim is the user id. This module only
verifies those tokens and resolves the caller's profile into an ``Actor``. The
actor is then passed explicitly into each domain operation.
"""

from typing import Optional
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from sqlmodel import select

from .config import get_settings
from .constants import ROLE_CITIZEN
from .database import get_session
from .errors import PermissionDenied
from .models import Profile

logger = logging.getLogger("warddost.auth")

_settings = get_settings()

SECRET_KEY = _settings.jwt_secret
if not SECRET_KEY:
    # Fail securely rather than accept tokens signed with a guessable default.
    raise ValueError("JWT_SECRET not found in environment or .env file.")

ALGORITHM = _settings.jwt_algorithm
AUDIENCE = _settings.jwt_audience

# auto_error=False so a missing header yields our JSON 401 instead of FastAPI's
# default 403.
security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    email: Optional[str] = None
    exp: Optional[int] = None


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as seen by the domain modules."""

    user_id: str
    role: str
    profile: Optional[Profile] = None


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token shaped like the identity provider's. Used by tests and dev scripts."""
    to_encode = {"sub": str(subject)}
    if email:
        to_encode["email"] = email
    if AUDIENCE:
        to_encode["aud"] = AUDIENCE
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode["exp"] = int(expire.timestamp())
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    options = {} if AUDIENCE else {"verify_aud": False}
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], audience=AUDIENCE, options=options)
        return TokenPayload(**payload)
    except (JWTError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"X-Auth-Reason": "Invalid token"},
        ) from exc


def get_token_payload(credentials: HTTPAuthorizationCredentials = Depends(security)) -> TokenPayload:
    if not credentials or not getattr(credentials, "credentials", None):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"X-Auth-Reason": "No credentials"},
        )
    return decode_access_token(credentials.credentials)


async def get_profile(session, user_id: str) -> Optional[Profile]:
    result = await session.exec(select(Profile).where(Profile.user_id == user_id))
    return result.first()


async def get_actor(
    payload: TokenPayload = Depends(get_token_payload),
    session=Depends(get_session),
) -> Actor:
    profile = await get_profile(session, payload.sub)
    if not profile:
        logger.info("Token subject %s has no profile yet", payload.sub)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found; complete signup first",
            headers={"X-Auth-Reason": "No profile"},
        )
    return Actor(user_id=profile.user_id, role=profile.role or ROLE_CITIZEN, profile=profile)


def ensure_role(actor: Actor, role: str, action: str) -> None:
    if actor.role != role:
        logger.warning("User %s (role=%s) denied: %s", actor.user_id, actor.role, action)
        raise PermissionDenied(f"Only {role} users may {action}")


__all__ = [
    "Actor",
    "TokenPayload",
    "create_access_token",
    "decode_access_token",
    "get_token_payload",
    "get_profile",
    "get_actor",
    "ensure_role",
]
