"""Emergency directory: ward-scoped contacts with in-memory filtering."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from sqlmodel import select

from .auth import Actor, ensure_role
from .constants import ROLE_AUTHORITY
from .errors import ValidationFailed
from .models import EmergencyContact, Ward

logger = logging.getLogger("warddost.emergency")


def contact_matches(contact: EmergencyContact, ward_id: Optional[str], query: Optional[str]) -> bool:
    if ward_id and contact.ward_id != ward_id:
        return False
    if query:
        needle = query.lower()
        return needle in contact.name.lower() or needle in contact.contact_type.lower()
    return True


def filter_contacts(
    contacts: Iterable[EmergencyContact],
    ward_id: Optional[str] = None,
    query: Optional[str] = None,
) -> List[EmergencyContact]:
    """Apply the ward and free-text filters together; an empty filter matches everything."""
    query = (query or "").strip() or None
    return [c for c in contacts if contact_matches(c, ward_id or None, query)]


async def list_contacts(
    session,
    ward_id: Optional[str] = None,
    query: Optional[str] = None,
) -> List[Tuple[EmergencyContact, Optional[str]]]:
    """Return (contact, ward name) pairs ordered by contact type."""
    statement = (
        select(EmergencyContact, Ward.name)
        .join(Ward, Ward.id == EmergencyContact.ward_id, isouter=True)
        .order_by(EmergencyContact.contact_type, EmergencyContact.name)
    )
    result = await session.exec(statement)
    rows = result.all()
    ward_names = {contact.id: ward_name for contact, ward_name in rows}
    kept = filter_contacts((contact for contact, _ in rows), ward_id, query)
    return [(contact, ward_names.get(contact.id)) for contact in kept]


async def create_contact(session, actor: Actor, fields: Dict[str, Any]) -> EmergencyContact:
    ensure_role(actor, ROLE_AUTHORITY, "maintain emergency contacts")
    if not await session.get(Ward, fields.get("ward_id")):
        raise ValidationFailed("Unknown ward", field="ward_id")
    contact = EmergencyContact(**fields)
    session.add(contact)
    await session.commit()
    await session.refresh(contact)
    logger.info("Emergency contact %s added to ward %s", contact.name, contact.ward_id)
    return contact
