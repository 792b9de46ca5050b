# app/core/exceptions.py
# Domain errors raised by the services layer.
# Endpoints never catch these -- the handler registered in app/main.py turns
# each one into a JSON error response with the class's HTTP status.

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class NotFoundException(DomainException):
    """Referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    """Authenticated, but not allowed to act on this resource."""
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateException(DomainException):
    """Operation is not legal for the entity's current lifecycle state."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionException(InvalidStateException):
    """Requested status change is not an edge of the tuition state machine."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Invalid status change from {current} to {requested}",
            details={"current": current, "requested": requested},
        )


class InvalidArgumentException(DomainException):
    """Malformed or out-of-range input."""
    status_code = status.HTTP_400_BAD_REQUEST


class NoOpException(DomainException):
    """Request carried nothing to change."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictException(DomainException):
    """Uniqueness or race-guard violation."""
    status_code = status.HTTP_409_CONFLICT


class PaymentProcessorException(DomainException):
    """The external payment processor failed or returned garbage."""
    status_code = status.HTTP_502_BAD_GATEWAY
