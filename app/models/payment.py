# app/models/payment.py
# Settlement ledger for tuition payments

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Uuid

from app.db.base_class import Base


class Payment(Base):
    """
    Immutable ledger row, written once per processor transaction.
    transaction_id is unique: retries and duplicate callbacks converge on
    the same row via INSERT ... ON CONFLICT DO NOTHING.

    Party ids are plain columns (no foreign keys) so the ledger outlives a
    deleted tuition.
    """
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # ── Processor ─────────────────────────────────────────────────────────────
    transaction_id = Column(String(255), unique=True, nullable=False, index=True)
    checkout_session_id = Column(String(255), nullable=True, index=True)
    payment_status = Column(String(50), nullable=False, default="paid")

    # ── Parties ───────────────────────────────────────────────────────────────
    tuition_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    tutor_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    application_id = Column(Uuid(as_uuid=True), nullable=True)
    student_email = Column(String(255), nullable=False, index=True)
    tutor_email = Column(String(255), nullable=True, index=True)

    # ── Amount (paise / minor units) ──────────────────────────────────────────
    amount_paise = Column(Integer, nullable=False)          # gross charged
    platform_fee_paise = Column(Integer, nullable=False)
    tutor_earning_paise = Column(Integer, nullable=False)   # gross - fee
    currency = Column(String(3), nullable=False, default="INR")

    paid_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    @property
    def amount(self) -> float:
        return self.amount_paise / 100

    def __repr__(self) -> str:
        return f"<Payment id={self.id} txn={self.transaction_id} amount={self.amount}>"
