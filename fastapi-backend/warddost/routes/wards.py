"""Ward registry, search and water-logging history endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from .. import wards as ward_service
from ..auth import Actor, get_actor
from ..database import get_session
from ..schemas import (
    WardCreate,
    WardPublic,
    WardSearchResult,
    WardUpdate,
    WaterLoggingCreate,
    WaterLoggingPublic,
)

router = APIRouter(prefix="/api/v1/wards", tags=["wards"])


@router.get("", response_model=List[WardPublic])
async def list_wards(actor: Actor = Depends(get_actor), session=Depends(get_session)):
    return [WardPublic.from_ward(ward) for ward in await ward_service.list_wards(session)]


@router.get("/search", response_model=WardSearchResult)
async def search_wards(
    mode: str = Query("name"),
    q: str = Query(""),
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    """Find the first ward matching a name fragment or an exact pincode.

    A miss is a normal answer (``found: false``), not a 404.
    """
    ward = await ward_service.search_wards(session, mode, q)
    if ward is None:
        return WardSearchResult(found=False, message=ward_service.NOT_FOUND_MESSAGE)
    return WardSearchResult(found=True, ward=WardPublic.from_ward(ward))


@router.post("", response_model=WardPublic, status_code=status.HTTP_201_CREATED)
async def create_ward(body: WardCreate, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    ward = await ward_service.create_ward(session, actor, body.model_dump())
    return WardPublic.from_ward(ward)


@router.get("/{ward_id}", response_model=WardPublic)
async def get_ward(ward_id: str, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    return WardPublic.from_ward(await ward_service.get_ward(session, ward_id))


@router.patch("/{ward_id}", response_model=WardPublic)
async def update_ward(
    ward_id: str,
    body: WardUpdate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    ward = await ward_service.update_ward(session, actor, ward_id, body.model_dump(exclude_unset=True))
    return WardPublic.from_ward(ward)


@router.get("/{ward_id}/history", response_model=List[WaterLoggingPublic])
async def list_history(ward_id: str, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    return await ward_service.list_water_logging(session, ward_id)


@router.post("/{ward_id}/history", response_model=WaterLoggingPublic, status_code=status.HTTP_201_CREATED)
async def record_history(
    ward_id: str,
    body: WaterLoggingCreate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    return await ward_service.record_water_logging(
        session,
        actor,
        ward_id,
        observed_on=body.date,
        rainfall_mm=body.rainfall_mm,
        water_logged=body.water_logged,
        severity=body.severity,
    )
