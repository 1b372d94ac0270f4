"""Emergency contact directory."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from .. import emergency as emergency_service
from ..auth import Actor, get_actor
from ..database import get_session
from ..models import Ward
from ..schemas import EmergencyContactCreate, EmergencyContactPublic

router = APIRouter(prefix="/api/v1/emergency-contacts", tags=["emergency"])


@router.get("", response_model=List[EmergencyContactPublic])
async def list_contacts(
    ward_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Matches contact name or type, case-insensitive"),
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    rows = await emergency_service.list_contacts(session, ward_id=ward_id, query=q)
    return [EmergencyContactPublic.build(contact, ward_name) for contact, ward_name in rows]


@router.post("", response_model=EmergencyContactPublic, status_code=status.HTTP_201_CREATED)
async def create_contact(
    body: EmergencyContactCreate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    contact = await emergency_service.create_contact(session, actor, body.model_dump())
    ward = await session.get(Ward, contact.ward_id)
    return EmergencyContactPublic.build(contact, ward.name if ward else None)
