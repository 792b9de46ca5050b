# app/schemas/review.py

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    tuition_id: UUID
    rating: int            # 1..5 -- range checked by the service
    review: Optional[str] = Field(None, max_length=5000)


class ReviewResponse(BaseModel):
    id: UUID
    tuition_id: Optional[UUID] = None
    tutor_id: UUID
    student_id: UUID
    rating: int
    review: str
    student_name: Optional[str] = None
    student_photo: Optional[str] = None
    tutor_name: Optional[str] = None
    tutor_photo: Optional[str] = None
    subjects: Optional[List[str]] = None
    posted_at: datetime

    model_config = {"from_attributes": True}
