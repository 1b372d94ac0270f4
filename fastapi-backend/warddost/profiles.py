"""Profile creation at signup and owner edits."""

from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError

from .auth import get_profile
from .config import get_settings
from .constants import ROLE_AUTHORITY, ROLE_CITIZEN
from .errors import Conflict, NotFound, PermissionDenied
from .models import Profile, utcnow

logger = logging.getLogger("warddost.profiles")


async def create_profile(
    session,
    user_id: str,
    full_name: str,
    email: Optional[str],
    phone: Optional[str],
    role: str = ROLE_CITIZEN,
) -> Profile:
    """Create the caller's profile. The role chosen here never changes afterwards."""
    if await get_profile(session, user_id):
        raise Conflict("Profile already exists for this account")

    allowlist = get_settings().authority_signup_emails
    if role == ROLE_AUTHORITY and allowlist and (email or "").lower() not in allowlist:
        raise PermissionDenied("This email is not registered for authority access", field="role")

    profile = Profile(user_id=user_id, full_name=full_name, email=email, phone=phone, role=role)
    session.add(profile)
    try:
        await session.commit()
    except IntegrityError as exc:
        # Two signups for the same identity raced; the first one won.
        await session.rollback()
        raise Conflict("Profile already exists for this account") from exc
    await session.refresh(profile)
    logger.info("Created %s profile for user %s", role, user_id)
    return profile


async def update_profile(
    session,
    user_id: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> Profile:
    profile = await get_profile(session, user_id)
    if not profile:
        raise NotFound("Profile not found")
    if full_name is not None:
        profile.full_name = full_name
    if phone is not None:
        profile.phone = phone
    profile.updated_at = utcnow()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile
