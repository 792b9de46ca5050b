# app/services/payment_service.py
# Payment settlement: processor checkout → ledger row → tuition assigned → ongoing
#
# Confirmation is retryable without bound. The first call to see a paid
# session writes the Payment and starts the tuition in one transaction;
# every later call (browser refresh, duplicate callback, a racing twin)
# finds the Payment by transaction_id and returns it untouched.

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    PaymentProcessorException,
)
from app.db.upsert import insert_if_absent
from app.models.payment import Payment
from app.models.tuition import Tuition
from app.services import notification_service
from app.services.razorpay_service import CheckoutSession, PaymentGateway

logger = logging.getLogger("tutorlink.payments")

PAYMENT_PURPOSE = "tuition_payment"


def split_fee(gross_paise: int, fee_fraction: Optional[float] = None) -> Tuple[int, int]:
    """
    Split a gross amount into (platform_fee, tutor_earning), both in paise.
    The fee is rounded half-up to the nearest paisa; the tutor gets the rest.
    """
    if fee_fraction is None:
        fee_fraction = settings.platform_fee_fraction
    fee = int(
        (Decimal(gross_paise) * Decimal(str(fee_fraction))).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )
    return fee, gross_paise - fee


def _rupees(paise: int) -> str:
    return f"{paise / 100:.2f}"


def _find_payment(db: Session, transaction_id: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.transaction_id == transaction_id).first()


# ── Checkout ──────────────────────────────────────────────────────────────────

def create_checkout(
    db: Session,
    gateway: PaymentGateway,
    tuition_id: UUID,
    requester_email: str,
) -> CheckoutSession:
    """
    Open a hosted checkout for the agreed salary of an assigned tuition.
    Only the tuition's student may pay.
    """
    tuition = db.get(Tuition, tuition_id, populate_existing=True)
    if tuition is None:
        raise NotFoundException("Tuition not found.")
    if tuition.student_email != requester_email:
        raise ForbiddenException("Unauthorized payment attempt.")
    if tuition.status != "assigned":
        raise InvalidStateException(
            "Payment allowed only for assigned tuition.",
            details={"status": tuition.status},
        )

    metadata: Dict[str, str] = {
        "tuition_id": str(tuition.id),
        "student_id": str(tuition.student_id),
        "tutor_id": str(tuition.tutor_id) if tuition.tutor_id else "",
        "application_id": (
            str(tuition.assigned_application_id) if tuition.assigned_application_id else ""
        ),
        "purpose": PAYMENT_PURPOSE,
    }
    session = gateway.create_checkout_session(
        amount=int(tuition.salary or 0) * 100,
        currency=settings.payment_currency,
        payee_email=tuition.student_email,
        metadata=metadata,
        description=f"Tuition fee for {', '.join(tuition.subjects or [])} ({tuition.class_level})",
    )
    logger.info(f"Checkout session {session.session_id} created for tuition={tuition.id}")
    return session


# ── Confirm ───────────────────────────────────────────────────────────────────

def confirm_payment(
    db: Session,
    gateway: PaymentGateway,
    session_id: str,
    requester_email: str,
) -> Tuple[Payment, bool]:
    """
    Record a paid checkout session and start the tuition.

    Returns (payment, already_recorded).

    Raises:
        Forbidden        -- session was paid by someone else
        InvalidState     -- session not paid, or tuition not awaiting payment
        NotFound         -- tuition in the session metadata no longer exists
        PaymentProcessor -- processor gave no transaction id
    """
    status = gateway.retrieve_session(session_id)

    if status.payee_email != requester_email:
        raise ForbiddenException("Unauthorized payment confirmation.")
    if status.payment_status != "paid":
        raise InvalidStateException(
            "Payment not completed.",
            details={"payment_status": status.payment_status},
        )
    if not status.transaction_id:
        raise PaymentProcessorException("Processor returned no transaction id.")

    existing = _find_payment(db, status.transaction_id)
    if existing:
        return existing, True

    try:
        tuition_id = UUID(status.metadata.get("tuition_id") or "")
    except ValueError:
        raise PaymentProcessorException("Checkout session carries no tuition id.")

    tuition = db.get(Tuition, tuition_id, populate_existing=True)
    if tuition is None:
        raise NotFoundException("Tuition not found.")

    gross = int(status.amount_total)
    fee, earning = split_fee(gross)
    now = datetime.now(timezone.utc)

    inserted = insert_if_absent(
        db,
        Payment,
        {
            "transaction_id": status.transaction_id,
            "checkout_session_id": session_id,
            "payment_status": status.payment_status,
            "tuition_id": tuition.id,
            "student_id": tuition.student_id,
            "tutor_id": tuition.tutor_id,
            "application_id": tuition.assigned_application_id,
            "student_email": tuition.student_email,
            "tutor_email": tuition.tutor_email,
            "amount_paise": gross,
            "platform_fee_paise": fee,
            "tutor_earning_paise": earning,
            "currency": settings.payment_currency,
            "paid_at": now,
        },
        index_elements=["transaction_id"],
    )
    if not inserted:
        # A concurrent confirm for the same transaction got there first
        db.rollback()
        return _find_payment(db, status.transaction_id), True

    rows = db.query(Tuition).filter(
        Tuition.id == tuition.id,
        Tuition.status == "assigned",
    ).update(
        {"status": "ongoing", "started_at": now},
        synchronize_session=False,
    )
    if rows == 0:
        db.rollback()
        current = db.get(Tuition, tuition.id, populate_existing=True)
        logger.error(
            f"Paid transaction {status.transaction_id} for tuition={tuition.id} "
            f"not recorded: tuition is {current.status if current else 'gone'}"
        )
        raise InvalidStateException(
            "Tuition is not awaiting payment.",
            details={"status": current.status if current else None},
        )

    db.commit()
    logger.info(
        f"Tuition {tuition.id}: assigned → ongoing "
        f"(txn={status.transaction_id} gross={gross} fee={fee} net={earning})"
    )

    notification_service.emit(
        db,
        target_email=tuition.tutor_email,
        notification_type="TUITION_STARTED",
        title="Tuition Started",
        message=(
            f"{tuition.student_name} has paid for the tuition. "
            f"Total paid: ₹{_rupees(gross)}, platform fee: ₹{_rupees(fee)}, "
            f"your earning: ₹{_rupees(earning)}"
        ),
        link="/dashboard/my-tuitions/tutor",
    )
    return _find_payment(db, status.transaction_id), False
