# app/schemas/tuition.py
# Pydantic request/response models for tuition endpoints

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ── Requests (input) ──────────────────────────────────────────────────────────

class TuitionCreate(BaseModel):
    """Student posts a tuition. Repeating the same idempotency_key is safe."""
    subjects: List[str]
    class_level: str
    mode: str                              # online | offline | both
    district: str
    location: Optional[str] = None
    days: Optional[int] = Field(None, ge=1, le=7)
    time: Optional[str] = None
    duration: Optional[str] = None
    min_budget: Optional[int] = Field(None, ge=0)
    max_budget: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    idempotency_key: Optional[str] = None  # May also come from the Idempotency-Key header

    @field_validator("subjects")
    @classmethod
    def clean_subjects(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


class TuitionUpdate(BaseModel):
    """
    Partial edit. Unknown fields are ignored; `status` requests a lifecycle
    transition and is validated against the state machine by the service.
    """
    class_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    days: Optional[int] = Field(None, ge=1, le=7)
    time: Optional[str] = None
    duration: Optional[str] = None
    min_budget: Optional[int] = Field(None, ge=0)
    max_budget: Optional[int] = Field(None, ge=0)
    mode: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


# ── Responses (output) ────────────────────────────────────────────────────────

class TuitionResponse(BaseModel):
    id: UUID
    status: str                            # open | assigned | ongoing | completed | closed

    # Student
    student_id: UUID
    student_email: str
    student_name: Optional[str] = None
    student_phone: Optional[str] = None
    student_photo: Optional[str] = None

    # Request
    subjects: List[str]
    class_level: str
    mode: str
    district: str
    location: Optional[str] = None
    days: Optional[int] = None
    time: Optional[str] = None
    duration: Optional[str] = None
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    description: Optional[str] = None

    # Match
    tutor_id: Optional[UUID] = None
    tutor_email: Optional[str] = None
    tutor_name: Optional[str] = None
    tutor_photo: Optional[str] = None
    tutor_phone: Optional[str] = None
    salary: Optional[int] = None
    assigned_application_id: Optional[UUID] = None

    # Review
    reviewed: bool = False
    review_id: Optional[UUID] = None

    # Timestamps
    posted_at: datetime
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str
