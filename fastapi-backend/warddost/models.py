from typing import Optional
from datetime import date, datetime, timezone
import uuid

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint

from .constants import ROLE_CITIZEN, STATUS_PENDING


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"
    id: str = Field(default_factory=_new_id, primary_key=True)
    # Subject of the identity provider's token; one profile per identity.
    user_id: str = Field(sa_column_kwargs={"unique": True}, index=True)
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    # Fixed at signup: 'citizen' or 'authority'.
    role: str = Field(default=ROLE_CITIZEN)
    created_at: Optional[datetime] = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class Ward(SQLModel, table=True):
    __tablename__ = "wards"
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)
    # Kept as text so leading zeros and formatting survive.
    pincode: str = Field(sa_column_kwargs={"unique": True})
    basin: str
    avg_rainfall_mm: Optional[float] = None
    drain_capacity_mm: Optional[float] = None
    # Authority-set label, independent of the rainfall/capacity comparison.
    risk_level: Optional[str] = None
    silt_management_status: Optional[str] = None
    last_maintenance_date: Optional[date] = None
    rating: Optional[float] = None
    created_at: Optional[datetime] = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class WaterLoggingRecord(SQLModel, table=True):
    __tablename__ = "water_logging_history"
    id: str = Field(default_factory=_new_id, primary_key=True)
    ward_id: str = Field(foreign_key="wards.id", index=True)
    date: date
    rainfall_mm: float
    water_logged: Optional[bool] = None
    severity: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=utcnow)


class Complaint(SQLModel, table=True):
    __tablename__ = "complaints"
    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str
    description: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    ward_id: str = Field(foreign_key="wards.id", index=True)
    user_id: str = Field(index=True)
    status: str = Field(default=STATUS_PENDING)
    is_resolved: bool = Field(default=False)
    resolution_rating: Optional[int] = None
    # Tri-state: None means the citizen has not answered yet.
    work_started_within_week: Optional[bool] = None
    authority_notes: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None


class ComplaintImage(SQLModel, table=True):
    __tablename__ = "complaint_images"
    id: str = Field(default_factory=_new_id, primary_key=True)
    complaint_id: str = Field(foreign_key="complaints.id", index=True)
    image_url: str
    storage_key: Optional[str] = None
    uploaded_by: str
    created_at: Optional[datetime] = Field(default_factory=utcnow)


class SubmissionKey(SQLModel, table=True):
    """Remembers Idempotency-Key headers so a resubmitted form is not filed twice."""

    __tablename__ = "complaint_submission_keys"
    __table_args__ = (UniqueConstraint("user_id", "key", name="uq_submission_keys_user_key"),)
    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str
    key: str
    complaint_id: str = Field(foreign_key="complaints.id")
    created_at: Optional[datetime] = Field(default_factory=utcnow)


class Review(SQLModel, table=True):
    __tablename__ = "reviews"
    id: str = Field(default_factory=_new_id, primary_key=True)
    complaint_id: str = Field(foreign_key="complaints.id", index=True)
    user_id: str
    content: str
    rating: int = Field(default=5)
    created_at: Optional[datetime] = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None


class ReviewVote(SQLModel, table=True):
    __tablename__ = "review_votes"
    __table_args__ = (UniqueConstraint("review_id", "user_id", name="uq_review_votes_review_user"),)
    id: str = Field(default_factory=_new_id, primary_key=True)
    review_id: str = Field(foreign_key="reviews.id", index=True)
    user_id: str
    is_helpful: bool
    created_at: Optional[datetime] = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class EmergencyContact(SQLModel, table=True):
    __tablename__ = "emergency_contacts"
    id: str = Field(default_factory=_new_id, primary_key=True)
    ward_id: str = Field(foreign_key="wards.id", index=True)
    contact_type: str
    name: str
    phone: str
    address: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=utcnow)
