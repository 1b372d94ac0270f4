"""Signup completion and the caller's own profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import Actor, TokenPayload, get_actor, get_token_payload
from ..database import get_session
from ..profiles import create_profile, update_profile
from ..schemas import ProfileCreate, ProfilePublic, ProfileUpdate

router = APIRouter(prefix="/api/v1", tags=["profile"])


@router.post("/profile", response_model=ProfilePublic, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    body: ProfileCreate,
    payload: TokenPayload = Depends(get_token_payload),
    session=Depends(get_session),
):
    # The only endpoint reachable with a token that has no profile yet.
    return await create_profile(
        session,
        user_id=payload.sub,
        full_name=body.full_name,
        email=body.email or payload.email,
        phone=body.phone,
        role=body.role,
    )


@router.get("/profile/me", response_model=ProfilePublic)
async def read_my_profile(actor: Actor = Depends(get_actor)):
    return actor.profile


@router.patch("/profile/me", response_model=ProfilePublic)
async def update_my_profile(
    body: ProfileUpdate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    return await update_profile(session, actor.user_id, full_name=body.full_name, phone=body.phone)
