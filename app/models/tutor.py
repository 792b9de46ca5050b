# app/models/tutor.py
# Tutor profile: submitted by a user, reviewed by an admin, rated by students

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)

from app.db.base_class import Base


class Tutor(Base):
    """
    Service-provider profile.
    Status lifecycle: pending → approved | rejected (set by admin review only).
    Only approved tutors may apply to tuitions.
    Rating aggregate is written only by the review finalizer, always with an
    in-database increment.
    """
    __tablename__ = "tutors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    email = Column(String(255), unique=True, nullable=False, index=True)

    # ── Public Profile ────────────────────────────────────────────────────────
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    photo_url = Column(Text, nullable=True)
    qualification = Column(String(255), nullable=True)
    institution = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True)
    experience_months = Column(Integer, nullable=True)
    subjects = Column(JSON, nullable=False, default=list)     # ["Physics", "Math"]
    bio = Column(Text, nullable=True)

    # ── Preferences ───────────────────────────────────────────────────────────
    district = Column(String(100), nullable=False, index=True)  # Eligibility gate
    location = Column(String(255), nullable=True)
    expected_salary = Column(Integer, nullable=True)
    mode = Column(String(50), nullable=True)                    # online | offline | both
    time = Column(String(100), nullable=True)

    # ── Verification ──────────────────────────────────────────────────────────
    id_card_url = Column(Text, nullable=False)                  # Private -- admin only
    status = Column(
        Enum("pending", "approved", "rejected", name="tutor_status_enum"),
        nullable=False,
        default="pending",
        index=True,
    )
    submitted_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    # ── Rating Aggregate ──────────────────────────────────────────────────────
    rating_sum = Column(Integer, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    @property
    def average_rating(self) -> float:
        if not self.rating_count:
            return 0.0
        return self.rating_sum / self.rating_count

    def __repr__(self) -> str:
        return f"<Tutor id={self.id} email={self.email} status={self.status}>"
