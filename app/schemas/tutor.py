# app/schemas/tutor.py
# Pydantic request/response models for tutor onboarding

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ── Submit ────────────────────────────────────────────────────────────────────

class TutorProfileCreate(BaseModel):
    name: str
    id_card_url: str
    subjects: List[str]
    district: str
    phone: Optional[str] = None
    photo_url: Optional[str] = None
    qualification: Optional[str] = None
    institution: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0)
    experience_months: Optional[int] = Field(None, ge=0, le=11)
    bio: Optional[str] = None
    location: Optional[str] = None
    expected_salary: Optional[int] = Field(None, ge=0)
    mode: Optional[str] = None
    time: Optional[str] = None

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


# ── Admin Review ──────────────────────────────────────────────────────────────

class TutorReviewRequest(BaseModel):
    status: str    # approved | rejected


# ── Responses ─────────────────────────────────────────────────────────────────

class TutorPublicResponse(BaseModel):
    """Public profile -- no id card, no contact details."""
    id: UUID
    name: str
    photo_url: Optional[str] = None
    qualification: Optional[str] = None
    institution: Optional[str] = None
    experience_years: Optional[int] = None
    experience_months: Optional[int] = None
    subjects: List[str]
    bio: Optional[str] = None
    district: str
    location: Optional[str] = None
    expected_salary: Optional[int] = None
    mode: Optional[str] = None
    time: Optional[str] = None
    status: str
    rating_count: int
    average_rating: float

    model_config = {"from_attributes": True}


class TutorResponse(TutorPublicResponse):
    """Owner / admin view."""
    user_id: UUID
    email: str
    phone: Optional[str] = None
    id_card_url: str
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
