# app/api/v1/router.py
# Master router -- registers all endpoint routers under /api/v1
# Each endpoint module registers its own router with its own prefix and tags

from fastapi import APIRouter

from app.api.v1.endpoints import (
    applications,
    auth,
    notifications,
    payments,
    reviews,
    tuitions,
    tutors,
)

api_router = APIRouter()

# Auth
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Tutor onboarding
api_router.include_router(tutors.router, prefix="/tutors", tags=["Tutors"])

# Tuition lifecycle & matching
api_router.include_router(tuitions.router, prefix="/tuitions", tags=["Tuitions"])
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])

# Payments (paths are top-level: /payment-checkout-session, /payment-success)
api_router.include_router(payments.router, tags=["Payments"])

# Reviews
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])

# Notifications
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
