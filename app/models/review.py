# app/models/review.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)

from app.db.base_class import Base


class Review(Base):
    """
    One rating per completed tuition (tuition_id is unique).
    Student/tutor name and photo are a display snapshot.
    """
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tuition_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tuitions.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    tutor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    rating = Column(Integer, nullable=False)                # 1..5
    review = Column(Text, nullable=False, default="")

    # ── Display snapshot ──────────────────────────────────────────────────────
    student_name = Column(String(255), nullable=True)
    student_photo = Column(Text, nullable=True)
    tutor_name = Column(String(255), nullable=True)
    tutor_photo = Column(Text, nullable=True)
    subjects = Column(JSON, nullable=True)

    posted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Review tuition={self.tuition_id} tutor={self.tutor_id} rating={self.rating}>"
