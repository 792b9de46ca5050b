# app/schemas/application.py
# Pydantic request/response models for tutor applications

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ApplicationCreate(BaseModel):
    tuition_id: UUID
    salary: int = Field(..., ge=0)
    cover_letter: Optional[str] = Field(None, max_length=5000)


class ApplicationDecision(BaseModel):
    status: str    # accepted | rejected -- checked by the service


class ApplicationResponse(BaseModel):
    id: UUID
    tuition_id: UUID
    tutor_id: UUID
    student_id: UUID
    salary: int
    cover_letter: Optional[str] = None
    status: str

    # Display snapshot
    tutor_name: Optional[str] = None
    tutor_photo: Optional[str] = None
    qualification: Optional[str] = None
    institution: Optional[str] = None
    experience_years: Optional[int] = None
    experience_months: Optional[int] = None
    tuition_time: Optional[str] = None
    days: Optional[int] = None
    class_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    location: Optional[str] = None

    applied_at: datetime
    decided_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
