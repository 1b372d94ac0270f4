"""Complaint lifecycle: filing, photo evidence, triage and citizen feedback.

Status may be moved by authority users only. Whatever the transition policy,
``is_resolved`` is rewritten in the same update as ``status`` so the two can
never disagree. Concurrent triage of one complaint is last-write-wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from .auth import Actor, ensure_role
from .config import get_settings
from .constants import (
    ROLE_AUTHORITY,
    ROLE_CITIZEN,
    STATUS_KEYS,
    STATUS_PENDING,
    STATUS_RESOLVED,
    STRICT_TRANSITIONS,
)
from .errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from .models import Complaint, ComplaintImage, SubmissionKey, Ward, utcnow
from .observability import complaint_status_changes_total, complaints_created_total
from .photo_utils import ImageValidationError, validate_image
from .storage import discard_object, store_complaint_image
from .storage_s3 import StorageError
from .upload_metrics import IMAGE_ATTACH_ATTEMPTS, IMAGE_ATTACH_FAILURES, IMAGE_ATTACH_SUCCESSES

logger = logging.getLogger("warddost.complaints")

ATTACH_SKIPPED = "skipped"
ATTACH_ATTACHED = "attached"
ATTACH_FAILED = "failed"


@dataclass
class AttachOutcome:
    status: str
    detail: Optional[str] = None
    image: Optional[ComplaintImage] = None


def can_transition(policy: str, old_status: Optional[str], new_status: str) -> bool:
    """Whether ``old_status -> new_status`` is allowed under ``policy``.

    ``permissive`` lets an authority set any status from any status; ``strict``
    follows STRICT_TRANSITIONS. Re-applying the current status is always fine so
    notes can be edited on their own.
    """
    if new_status not in STATUS_KEYS:
        return False
    if policy == "permissive" or old_status == new_status:
        return True
    return new_status in STRICT_TRANSITIONS.get(old_status or "", frozenset())


def apply_status(complaint: Complaint, new_status: str) -> None:
    complaint.status = new_status
    complaint.is_resolved = new_status == STATUS_RESOLVED
    complaint.updated_at = utcnow()


async def _load(session, complaint_id: str) -> Complaint:
    complaint = await session.get(Complaint, complaint_id)
    if not complaint:
        raise NotFound("Complaint not found")
    return complaint


def _ensure_owner(actor: Actor, complaint: Complaint, action: str) -> None:
    if complaint.user_id != actor.user_id:
        raise PermissionDenied(f"Only the citizen who filed this complaint may {action}")


async def _find_submission(session, user_id: str, key: str) -> Optional[Complaint]:
    statement = select(Complaint).join(SubmissionKey, SubmissionKey.complaint_id == Complaint.id).where(
        SubmissionKey.user_id == user_id, SubmissionKey.key == key
    )
    result = await session.exec(statement)
    return result.first()


async def create_complaint(
    session,
    actor: Actor,
    fields: Dict[str, Any],
    idempotency_key: Optional[str] = None,
) -> Tuple[Complaint, bool]:
    """File a complaint. Returns (complaint, replayed).

    ``replayed`` is True when ``idempotency_key`` was already used by this
    citizen; the earlier complaint is returned and nothing new is written.
    """
    ensure_role(actor, ROLE_CITIZEN, "file complaints")

    if idempotency_key:
        existing = await _find_submission(session, actor.user_id, idempotency_key)
        if existing:
            logger.info("Replaying submission %s for user %s", idempotency_key, actor.user_id)
            return existing, True

    if not await session.get(Ward, fields.get("ward_id")):
        raise ValidationFailed("Select a valid ward", field="ward_id")

    # Owner and lifecycle fields are never taken from the request.
    complaint = Complaint(
        title=fields["title"],
        description=fields["description"],
        location=fields["location"],
        ward_id=fields["ward_id"],
        latitude=fields.get("latitude"),
        longitude=fields.get("longitude"),
        user_id=actor.user_id,
    )
    apply_status(complaint, STATUS_PENDING)
    complaint.updated_at = complaint.created_at
    session.add(complaint)
    if idempotency_key:
        session.add(SubmissionKey(user_id=actor.user_id, key=idempotency_key, complaint_id=complaint.id))

    try:
        await session.commit()
    except IntegrityError:
        # A concurrent request with the same key committed first.
        await session.rollback()
        if idempotency_key:
            existing = await _find_submission(session, actor.user_id, idempotency_key)
            if existing:
                return existing, True
        raise
    await session.refresh(complaint)

    complaints_created_total.inc()
    logger.info("Complaint %s filed by %s in ward %s", complaint.id, actor.user_id, complaint.ward_id)
    return complaint, False


async def attach_image(
    session,
    actor: Actor,
    complaint: Complaint,
    data: bytes,
    file_name: Optional[str],
) -> ComplaintImage:
    """Validate, upload and link one photo. Raises on any failure."""
    _ensure_owner(actor, complaint, "add photos")
    IMAGE_ATTACH_ATTEMPTS.inc()

    try:
        validate_image(data, file_name, get_settings().max_image_bytes)
    except ImageValidationError:
        IMAGE_ATTACH_FAILURES.labels(reason="invalid").inc()
        raise

    try:
        key, url = await store_complaint_image(data, file_name, actor.user_id, complaint.id)
    except StorageError:
        IMAGE_ATTACH_FAILURES.labels(reason="storage").inc()
        raise

    image = ComplaintImage(complaint_id=complaint.id, image_url=url, storage_key=key, uploaded_by=actor.user_id)
    session.add(image)
    try:
        await session.commit()
    except SQLAlchemyError:
        IMAGE_ATTACH_FAILURES.labels(reason="database").inc()
        await session.rollback()
        await discard_object(key)
        raise
    await session.refresh(image)

    IMAGE_ATTACH_SUCCESSES.inc()
    logger.info("Photo %s attached to complaint %s", image.id, complaint.id)
    return image


async def create_complaint_with_image(
    session,
    actor: Actor,
    fields: Dict[str, Any],
    image_data: Optional[bytes] = None,
    image_name: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Tuple[Complaint, bool, AttachOutcome]:
    """File a complaint, then try to attach its photo as a separate step.

    The complaint is committed before the upload starts and is kept if the
    upload fails. The outcome tells the caller which of the two phases
    succeeded so the citizen can retry just the photo.
    """
    complaint, replayed = await create_complaint(session, actor, fields, idempotency_key)

    if replayed or not image_data:
        return complaint, replayed, AttachOutcome(status=ATTACH_SKIPPED)

    try:
        image = await attach_image(session, actor, complaint, image_data, image_name)
    except ImageValidationError as exc:
        logger.warning("Complaint %s saved but photo rejected: %s", complaint.id, exc)
        return complaint, False, AttachOutcome(
            status=ATTACH_FAILED,
            detail=f"Complaint saved, but the photo was rejected: {exc}. Retry with another file.",
        )
    except (StorageError, SQLAlchemyError) as exc:
        logger.error("Complaint %s saved but photo upload failed: %s", complaint.id, exc)
        return complaint, False, AttachOutcome(
            status=ATTACH_FAILED,
            detail="Complaint saved, but the photo upload failed. Retry the upload.",
        )
    return complaint, False, AttachOutcome(status=ATTACH_ATTACHED, image=image)


async def get_complaint(session, complaint_id: str) -> Tuple[Complaint, Optional[str]]:
    statement = (
        select(Complaint, Ward.name)
        .join(Ward, Ward.id == Complaint.ward_id, isouter=True)
        .where(Complaint.id == complaint_id)
    )
    result = await session.exec(statement)
    row = result.first()
    if not row:
        raise NotFound("Complaint not found")
    return row[0], row[1]


async def list_images(session, complaint_id: str) -> List[ComplaintImage]:
    await _load(session, complaint_id)
    statement = (
        select(ComplaintImage)
        .where(ComplaintImage.complaint_id == complaint_id)
        .order_by(ComplaintImage.created_at)
    )
    result = await session.exec(statement)
    return list(result.all())


async def list_complaints(
    session,
    actor: Actor,
    page: int = 1,
    page_size: int = 20,
    status: Optional[str] = None,
    ward_id: Optional[str] = None,
    mine: bool = False,
) -> Tuple[List[Tuple[Complaint, Optional[str]]], int]:
    """Newest-first page of (complaint, ward name) rows plus the total count."""
    filters = []
    if status:
        if status not in STATUS_KEYS:
            raise ValidationFailed(f"Invalid status. Allowed: {', '.join(STATUS_KEYS)}", field="status")
        filters.append(Complaint.status == status)
    if ward_id:
        filters.append(Complaint.ward_id == ward_id)
    if mine:
        filters.append(Complaint.user_id == actor.user_id)

    count_statement = select(func.count(Complaint.id)).where(*filters)
    total = (await session.exec(count_statement)).one()

    statement = (
        select(Complaint, Ward.name)
        .join(Ward, Ward.id == Complaint.ward_id, isouter=True)
        .where(*filters)
        .order_by(Complaint.created_at.desc(), Complaint.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await session.exec(statement)
    return [(row[0], row[1]) for row in result.all()], total


async def update_status(
    session,
    actor: Actor,
    complaint_id: str,
    new_status: str,
    authority_notes: Optional[str] = None,
) -> Complaint:
    ensure_role(actor, ROLE_AUTHORITY, "update complaint status")
    complaint = await _load(session, complaint_id)

    policy = get_settings().status_transition_policy
    if not can_transition(policy, complaint.status, new_status):
        raise Conflict(
            f"Invalid status transition from {complaint.status} to {new_status}", field="status"
        )

    old_status = complaint.status
    apply_status(complaint, new_status)
    if authority_notes is not None:
        complaint.authority_notes = authority_notes
    session.add(complaint)
    await session.commit()
    await session.refresh(complaint)

    complaint_status_changes_total.labels(status=new_status).inc()
    logger.info(
        "Complaint %s moved %s -> %s by %s", complaint.id, old_status, new_status, actor.user_id
    )
    return complaint


async def record_feedback(
    session,
    actor: Actor,
    complaint_id: str,
    resolution_rating: Optional[int] = None,
    work_started_within_week: Optional[bool] = None,
) -> Complaint:
    """Store the filing citizen's feedback; either field may be sent alone."""
    complaint = await _load(session, complaint_id)
    _ensure_owner(actor, complaint, "give feedback")

    if resolution_rating is not None:
        if complaint.status != STATUS_RESOLVED:
            raise Conflict("Resolution can only be rated once the complaint is resolved", field="resolution_rating")
        complaint.resolution_rating = resolution_rating
    if work_started_within_week is not None:
        complaint.work_started_within_week = work_started_within_week

    complaint.updated_at = utcnow()
    session.add(complaint)
    await session.commit()
    await session.refresh(complaint)
    return complaint


async def retry_image_attach(
    session, actor: Actor, complaint_id: str, data: bytes, file_name: Optional[str]
) -> ComplaintImage:
    """Attach a photo to an existing complaint, e.g. after a failed first attempt."""
    complaint = await _load(session, complaint_id)
    return await attach_image(session, actor, complaint, data, file_name)
