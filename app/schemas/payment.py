# app/schemas/payment.py
# Pydantic models for checkout + settlement

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    tuition_id: UUID


class CheckoutResponse(BaseModel):
    url: str            # Hosted checkout page -- frontend redirects here
    session_id: str     # Pass back to PATCH /payment-success


class PaymentConfirmResponse(BaseModel):
    payment_id: UUID
    transaction_id: str
    tuition_id: UUID
    amount: float                 # rupees
    amount_paise: int
    platform_fee_paise: int
    tutor_earning_paise: int
    currency: str
    paid_at: datetime
    already_recorded: bool        # True when this confirmation was a repeat
    tutor_id: Optional[UUID] = None
