# app/services/razorpay_service.py
# Razorpay API wrapper -- the payment processor behind tuition checkout
#
# Razorpay Payment Link flow:
#   1. Create a payment link for the agreed salary -> get short_url + plink id
#   2. Frontend redirects the student to short_url (hosted checkout)
#   3. Razorpay redirects back to CLIENT_URL/dashboard/payment-success
#      with razorpay_payment_link_id; frontend calls PATCH /payment-success
#   4. We fetch the link, check it is paid, and settle the tuition
#
# payment_service only talks to the PaymentGateway interface below, so tests
# swap in a fake via the get_payment_gateway dependency.

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import razorpay

from app.core.config import settings
from app.core.exceptions import PaymentProcessorException


@dataclass
class CheckoutSession:
    url: str
    session_id: str


@dataclass
class SessionStatus:
    payee_email: Optional[str]
    payment_status: str                 # "paid" once money is captured
    transaction_id: Optional[str]       # processor payment id
    amount_total: int                   # minor units (paise)
    metadata: Dict[str, str] = field(default_factory=dict)


class PaymentGateway(Protocol):
    def create_checkout_session(
        self,
        amount: int,
        currency: str,
        payee_email: str,
        metadata: Dict[str, str],
        description: str = "",
    ) -> CheckoutSession: ...

    def retrieve_session(self, session_id: str) -> SessionStatus: ...


def get_razorpay_client() -> razorpay.Client:
    """Return authenticated Razorpay client."""
    return razorpay.Client(
        auth=(settings.razorpay_key_id, settings.razorpay_key_secret)
    )


# ── Razorpay Payment Link Status -> Our Status Mapping ───────────────────────
# Payment link statuses:
#   created         -> link issued, nothing paid yet
#   partially_paid  -> some amount captured (not used for tuition fees)
#   paid            -> full amount captured
#   expired         -> link expired unpaid
#   cancelled       -> link cancelled by us

RAZORPAY_TO_OUR_STATUS = {
    "created": "unpaid",
    "partially_paid": "unpaid",
    "paid": "paid",
    "expired": "expired",
    "cancelled": "cancelled",
}


def map_status(razorpay_status: str) -> str:
    """Map Razorpay payment link status to our internal payment status."""
    return RAZORPAY_TO_OUR_STATUS.get(razorpay_status, "unpaid")


class RazorpayGateway:
    """PaymentGateway backed by Razorpay Payment Links."""

    def __init__(self, client: Optional[razorpay.Client] = None) -> None:
        self.client = client or get_razorpay_client()

    def create_checkout_session(
        self,
        amount: int,
        currency: str,
        payee_email: str,
        metadata: Dict[str, str],
        description: str = "",
    ) -> CheckoutSession:
        """
        Create a hosted payment link.

        Args:
            amount: Amount in minor units (paise)
            currency: ISO currency code, e.g. "INR"
            payee_email: Student paying -- checked again on confirmation
            metadata: Opaque correlation ids, stored as Razorpay notes
            description: Shown on the hosted checkout page
        """
        try:
            link = self.client.payment_link.create({
                "amount": amount,
                "currency": currency,
                "description": description[:2048],
                "customer": {"email": payee_email},
                "notify": {"sms": False, "email": True},
                "notes": metadata,
                "callback_url": f"{settings.client_url}/dashboard/payment-success",
                "callback_method": "get",
            })
        except Exception as e:
            raise PaymentProcessorException(f"Failed to create checkout session: {e}")

        return CheckoutSession(url=link["short_url"], session_id=link["id"])

    def retrieve_session(self, session_id: str) -> SessionStatus:
        """Fetch a payment link and normalise it."""
        try:
            link = self.client.payment_link.fetch(session_id)
        except Exception as e:
            raise PaymentProcessorException(f"Failed to retrieve checkout session: {e}")

        captured = [
            p for p in (link.get("payments") or [])
            if p.get("status") == "captured"
        ]
        return SessionStatus(
            payee_email=(link.get("customer") or {}).get("email"),
            payment_status=map_status(link.get("status", "")),
            transaction_id=captured[0]["payment_id"] if captured else None,
            amount_total=int(link.get("amount_paid") or 0),
            metadata=link.get("notes") or {},
        )


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency -- overridden in tests."""
    return RazorpayGateway()
