"""Complaint filing, triage and photo endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, Query, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from .. import complaints as complaint_service
from ..auth import Actor, get_actor
from ..config import get_settings
from ..database import get_session
from ..schemas import (
    ComplaintCreate,
    ComplaintCreated,
    ComplaintPublic,
    FeedbackUpdate,
    ImageAttachPublic,
    ImagePublic,
    PaginatedComplaints,
    StatusUpdate,
)

router = APIRouter(prefix="/api/v1/complaints", tags=["complaints"])


@router.post("", response_model=ComplaintCreated, status_code=status.HTTP_201_CREATED)
async def file_complaint(
    response: Response,
    title: str = Form(...),
    description: str = Form(...),
    location: str = Form(...),
    ward_id: str = Form(...),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    image: Optional[UploadFile] = File(None),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    """File a complaint with an optional photo.

    The complaint is saved first. ``image_attach.status`` then reports whether
    the photo was attached, skipped or failed; a failed photo can be re-sent to
    ``POST /complaints/{id}/images`` without filing the complaint again.
    Re-sending the same ``Idempotency-Key`` returns the original complaint
    with status 200.
    """
    try:
        payload = ComplaintCreate(
            title=title,
            description=description,
            location=location,
            ward_id=ward_id,
            latitude=latitude,
            longitude=longitude,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    image_data = image_name = None
    if image is not None and image.filename:
        image_data = await image.read()
        image_name = image.filename

    complaint, replayed, outcome = await complaint_service.create_complaint_with_image(
        session,
        actor,
        payload.model_dump(),
        image_data=image_data,
        image_name=image_name,
        idempotency_key=(idempotency_key or "").strip() or None,
    )
    if replayed:
        response.status_code = status.HTTP_200_OK

    complaint, ward_name = await complaint_service.get_complaint(session, complaint.id)
    images = await complaint_service.list_images(session, complaint.id)
    return ComplaintCreated(
        complaint=ComplaintPublic.build(complaint, ward_name, images),
        replayed=replayed,
        image_attach=ImageAttachPublic(
            status=outcome.status,
            detail=outcome.detail,
            image=ImagePublic.model_validate(outcome.image) if outcome.image else None,
        ),
    )


@router.get("", response_model=PaginatedComplaints)
async def list_complaints(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    ward_id: Optional[str] = Query(None),
    mine: bool = Query(False),
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    settings = get_settings()
    page_size = min(page_size or settings.default_page_size, settings.max_page_size)

    rows, total = await complaint_service.list_complaints(
        session, actor, page=page, page_size=page_size, status=status_filter, ward_id=ward_id, mine=mine
    )
    return PaginatedComplaints(
        items=[ComplaintPublic.build(complaint, ward_name) for complaint, ward_name in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


@router.get("/{complaint_id}", response_model=ComplaintPublic)
async def get_complaint(complaint_id: str, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    complaint, ward_name = await complaint_service.get_complaint(session, complaint_id)
    images = await complaint_service.list_images(session, complaint_id)
    return ComplaintPublic.build(complaint, ward_name, images)


@router.patch("/{complaint_id}/status", response_model=ComplaintPublic)
async def update_status(
    complaint_id: str,
    body: StatusUpdate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    await complaint_service.update_status(session, actor, complaint_id, body.status, body.authority_notes)
    complaint, ward_name = await complaint_service.get_complaint(session, complaint_id)
    return ComplaintPublic.build(complaint, ward_name)


@router.patch("/{complaint_id}/feedback", response_model=ComplaintPublic)
async def record_feedback(
    complaint_id: str,
    body: FeedbackUpdate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    await complaint_service.record_feedback(
        session,
        actor,
        complaint_id,
        resolution_rating=body.resolution_rating,
        work_started_within_week=body.work_started_within_week,
    )
    complaint, ward_name = await complaint_service.get_complaint(session, complaint_id)
    return ComplaintPublic.build(complaint, ward_name)


@router.get("/{complaint_id}/images", response_model=List[ImagePublic])
async def list_images(complaint_id: str, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    return await complaint_service.list_images(session, complaint_id)


@router.post("/{complaint_id}/images", response_model=ImagePublic, status_code=status.HTTP_201_CREATED)
async def attach_image(
    complaint_id: str,
    image: UploadFile = File(...),
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    """Attach (or re-try attaching) a photo to an existing complaint."""
    data = await image.read()
    return await complaint_service.retry_image_attach(session, actor, complaint_id, data, image.filename)
