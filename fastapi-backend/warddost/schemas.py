"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator, model_validator

from .models import Complaint, ComplaintImage, EmergencyContact, Ward
from .reviews import ReviewSummary
from .risk import evaluate_risk

Role = Literal["citizen", "authority"]
Status = Literal["pending", "in_progress", "resolved", "rejected"]
RiskLevel = Literal["low", "medium", "high"]
AttachStatus = Literal["skipped", "attached", "failed"]

NonBlank = constr(strip_whitespace=True, min_length=1)


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Profiles


class ProfileCreate(BaseModel):
    full_name: NonBlank
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role = "citizen"


class ProfileUpdate(BaseModel):
    full_name: Optional[NonBlank] = None
    phone: Optional[str] = None


class ProfilePublic(ORMModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Wards


class WardFields(BaseModel):
    avg_rainfall_mm: Optional[float] = Field(None, ge=0)
    drain_capacity_mm: Optional[float] = Field(None, ge=0)
    risk_level: Optional[RiskLevel] = None
    silt_management_status: Optional[str] = None
    last_maintenance_date: Optional[date] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class WardCreate(WardFields):
    name: NonBlank
    pincode: NonBlank
    basin: NonBlank


class WardUpdate(WardFields):
    name: Optional[NonBlank] = None
    pincode: Optional[NonBlank] = None
    basin: Optional[NonBlank] = None

    @field_validator("name", "pincode", "basin", mode="before")
    @classmethod
    def not_null(cls, v):
        # Omitted means unchanged; an explicit null would blank a required column.
        if v is None:
            raise ValueError("may be omitted but cannot be null")
        return v


class RiskPublic(BaseModel):
    at_risk: Optional[bool]
    message: str


class WardPublic(ORMModel):
    id: str
    name: str
    pincode: str
    basin: str
    avg_rainfall_mm: Optional[float] = None
    drain_capacity_mm: Optional[float] = None
    risk_level: Optional[str] = None
    silt_management_status: Optional[str] = None
    last_maintenance_date: Optional[date] = None
    rating: Optional[float] = None
    risk: RiskPublic

    @classmethod
    def from_ward(cls, ward: Ward) -> "WardPublic":
        assessment = evaluate_risk(ward.avg_rainfall_mm, ward.drain_capacity_mm)
        data = {name: getattr(ward, name) for name in cls.model_fields if name != "risk"}
        return cls(**data, risk=RiskPublic(at_risk=assessment.at_risk, message=assessment.message))


class WardSearchResult(BaseModel):
    found: bool
    ward: Optional[WardPublic] = None
    message: Optional[str] = None


class WaterLoggingCreate(BaseModel):
    date: date
    rainfall_mm: float = Field(..., ge=0)
    water_logged: Optional[bool] = None
    severity: Optional[RiskLevel] = None


class WaterLoggingPublic(ORMModel):
    id: str
    ward_id: str
    date: date
    rainfall_mm: float
    water_logged: Optional[bool] = None
    severity: Optional[str] = None


# Complaints


class ComplaintCreate(BaseModel):
    title: NonBlank
    description: NonBlank
    location: NonBlank
    ward_id: NonBlank
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class ImagePublic(ORMModel):
    id: str
    complaint_id: str
    image_url: str
    uploaded_by: str
    created_at: Optional[datetime] = None


class ComplaintPublic(ORMModel):
    id: str
    title: str
    description: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    ward_id: str
    ward_name: Optional[str] = None
    user_id: str
    status: Status
    is_resolved: bool
    resolution_rating: Optional[int] = None
    work_started_within_week: Optional[bool] = None
    authority_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    images: List[ImagePublic] = []

    @classmethod
    def build(
        cls,
        complaint: Complaint,
        ward_name: Optional[str] = None,
        images: Optional[List[ComplaintImage]] = None,
    ) -> "ComplaintPublic":
        public = cls.model_validate(complaint)
        public.ward_name = ward_name
        public.images = [ImagePublic.model_validate(image) for image in images or []]
        return public


class ImageAttachPublic(BaseModel):
    status: AttachStatus
    detail: Optional[str] = None
    image: Optional[ImagePublic] = None


class ComplaintCreated(BaseModel):
    complaint: ComplaintPublic
    replayed: bool = False
    image_attach: ImageAttachPublic


class PaginatedComplaints(BaseModel):
    items: List[ComplaintPublic]
    total: int
    page: int
    page_size: int
    total_pages: int


class StatusUpdate(BaseModel):
    status: Status
    authority_notes: Optional[str] = None


class FeedbackUpdate(BaseModel):
    resolution_rating: Optional[int] = Field(None, ge=1, le=5)
    work_started_within_week: Optional[bool] = None

    @model_validator(mode="after")
    def has_some_feedback(self) -> "FeedbackUpdate":
        if self.resolution_rating is None and self.work_started_within_week is None:
            raise ValueError("Provide resolution_rating or work_started_within_week")
        return self


# Reviews


class ReviewCreate(BaseModel):
    content: str
    rating: int = Field(5, ge=1, le=5)


class ReviewPublic(BaseModel):
    id: str
    complaint_id: str
    user_id: str
    content: str
    rating: int
    created_at: Optional[datetime] = None
    helpful_votes: int = 0
    unhelpful_votes: int = 0
    helpfulness_score: int = 0

    @classmethod
    def from_summary(cls, summary: ReviewSummary) -> "ReviewPublic":
        review = summary.review
        return cls(
            id=review.id,
            complaint_id=review.complaint_id,
            user_id=review.user_id,
            content=review.content,
            rating=review.rating,
            created_at=review.created_at,
            helpful_votes=summary.helpful_votes,
            unhelpful_votes=summary.unhelpful_votes,
            helpfulness_score=summary.helpfulness_score,
        )


class VoteRequest(BaseModel):
    is_helpful: bool


class VotePublic(ORMModel):
    review_id: str
    user_id: str
    is_helpful: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Emergency directory


class EmergencyContactCreate(BaseModel):
    ward_id: NonBlank
    contact_type: NonBlank
    name: NonBlank
    phone: NonBlank
    address: Optional[str] = None


class EmergencyContactPublic(ORMModel):
    id: str
    ward_id: str
    ward_name: Optional[str] = None
    contact_type: str
    name: str
    phone: str
    address: Optional[str] = None

    @classmethod
    def build(cls, contact: EmergencyContact, ward_name: Optional[str]) -> "EmergencyContactPublic":
        public = cls.model_validate(contact)
        public.ward_name = ward_name
        return public
