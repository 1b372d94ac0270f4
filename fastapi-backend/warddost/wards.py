"""Ward registry: reference data, search and water-logging history."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from .auth import Actor, ensure_role
from .constants import ROLE_AUTHORITY, SEARCH_MODES
from .errors import Conflict, NotFound, ValidationFailed
from .models import Ward, WaterLoggingRecord, utcnow

logger = logging.getLogger("warddost.wards")

NOT_FOUND_MESSAGE = "No ward found with the given search criteria"


def find_ward(wards: Sequence[Ward], mode: str, value: str) -> Optional[Ward]:
    """Return the first ward matching ``value``, scanning in registry order.

    ``name`` mode is a case-insensitive substring match; ``pincode`` mode is
    exact text equality. A miss returns None rather than raising.
    """
    if mode not in SEARCH_MODES:
        raise ValidationFailed(f"Search mode must be one of: {', '.join(SEARCH_MODES)}", field="mode")
    if value is None or not value.strip():
        raise ValidationFailed("Enter a ward name or pincode to search", field="q")

    if mode == "name":
        needle = value.strip().lower()
        return next((w for w in wards if needle in w.name.lower()), None)
    return next((w for w in wards if w.pincode == value.strip()), None)


async def list_wards(session) -> list[Ward]:
    result = await session.exec(select(Ward).order_by(Ward.name))
    return list(result.all())


async def get_ward(session, ward_id: str) -> Ward:
    ward = await session.get(Ward, ward_id)
    if not ward:
        raise NotFound("Ward not found")
    return ward


async def search_wards(session, mode: str, value: str) -> Optional[Ward]:
    return find_ward(await list_wards(session), mode, value)


async def create_ward(session, actor: Actor, fields: Dict[str, Any]) -> Ward:
    ensure_role(actor, ROLE_AUTHORITY, "maintain ward data")
    ward = Ward(**fields)
    session.add(ward)
    await _commit_unique_pincode(session)
    await session.refresh(ward)
    logger.info("Ward %s (%s) created by %s", ward.name, ward.pincode, actor.user_id)
    return ward


async def update_ward(session, actor: Actor, ward_id: str, changes: Dict[str, Any]) -> Ward:
    ensure_role(actor, ROLE_AUTHORITY, "maintain ward data")
    ward = await get_ward(session, ward_id)
    for key, value in changes.items():
        setattr(ward, key, value)
    ward.updated_at = utcnow()
    session.add(ward)
    await _commit_unique_pincode(session)
    await session.refresh(ward)
    return ward


async def _commit_unique_pincode(session) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        # sqlite: "UNIQUE constraint failed: wards.pincode"; postgres: "wards_pincode_key"
        message = str(exc.orig).lower()
        if "pincode" in message and ("unique" in message or "duplicate" in message):
            raise Conflict("Another ward already uses this pincode", field="pincode") from exc
        raise


async def record_water_logging(
    session,
    actor: Actor,
    ward_id: str,
    observed_on: date,
    rainfall_mm: float,
    water_logged: Optional[bool] = None,
    severity: Optional[str] = None,
) -> WaterLoggingRecord:
    ensure_role(actor, ROLE_AUTHORITY, "record water-logging history")
    await get_ward(session, ward_id)
    record = WaterLoggingRecord(
        ward_id=ward_id,
        date=observed_on,
        rainfall_mm=rainfall_mm,
        water_logged=water_logged,
        severity=severity,
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


async def list_water_logging(session, ward_id: str) -> list[WaterLoggingRecord]:
    await get_ward(session, ward_id)
    statement = (
        select(WaterLoggingRecord)
        .where(WaterLoggingRecord.ward_id == ward_id)
        .order_by(WaterLoggingRecord.date.desc(), WaterLoggingRecord.created_at.desc())
    )
    result = await session.exec(statement)
    return list(result.all())
