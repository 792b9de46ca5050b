# app/api/v1/endpoints/payments.py
# Tuition payment endpoints (mounted without a prefix)
#
# POST  /payment-checkout-session      -- student opens hosted checkout
# PATCH /payment-success?session_id=   -- confirm; safe to call repeatedly

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import app.db.base  # noqa: F401
from app.core.dependencies import require_login
from app.db.session import get_db
from app.models.payment import Payment
from app.models.user import User
from app.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentConfirmResponse,
)
from app.services import payment_service
from app.services.razorpay_service import PaymentGateway, get_payment_gateway

router = APIRouter()


def _to_response(payment: Payment, already_recorded: bool) -> PaymentConfirmResponse:
    return PaymentConfirmResponse(
        payment_id=payment.id,
        transaction_id=payment.transaction_id,
        tuition_id=payment.tuition_id,
        tutor_id=payment.tutor_id,
        amount=payment.amount,
        amount_paise=payment.amount_paise,
        platform_fee_paise=payment.platform_fee_paise,
        tutor_earning_paise=payment.tutor_earning_paise,
        currency=payment.currency,
        paid_at=payment.paid_at,
        already_recorded=already_recorded,
    )


@router.post(
    "/payment-checkout-session",
    response_model=CheckoutResponse,
    summary="Create a checkout session for an assigned tuition",
)
def create_checkout_session(
    payload: CheckoutRequest,
    current_user: User = Depends(require_login),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    session = payment_service.create_checkout(db, gateway, payload.tuition_id, current_user.email)
    return CheckoutResponse(url=session.url, session_id=session.session_id)


@router.patch(
    "/payment-success",
    response_model=PaymentConfirmResponse,
    summary="Confirm a paid checkout session",
)
def payment_success(
    session_id: str = Query(..., min_length=1),
    current_user: User = Depends(require_login),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db),
):
    payment, already_recorded = payment_service.confirm_payment(
        db, gateway, session_id, current_user.email
    )
    return _to_response(payment, already_recorded)
