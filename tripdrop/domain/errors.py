"""
Typed failures raised by the delivery core.

Every error carries the HTTP status the request layer should answer with,
so the API can render all of them through a single exception handler.
"""

from __future__ import annotations


class DeliveryError(Exception):
    status_code = 400

    def __init__(self, message: str | None = None):
        # Subclass docstrings double as the default client-facing message
        self.message = message or (self.__doc__ or "").strip()
        super().__init__(self.message)


class ValidationError(DeliveryError):
    """Malformed or out-of-range input."""

    status_code = 422


class DeliveryNotFound(DeliveryError):
    """Delivery not found."""

    status_code = 404


class DeliveryUnavailable(DeliveryError):
    """Delivery is not available."""

    status_code = 409


class Unauthorized(DeliveryError):
    """Not authorized."""

    status_code = 403


class InvalidTransition(DeliveryError):
    """Delivery cannot move to the requested status."""

    status_code = 409


class InvalidOTP(DeliveryError):
    """Invalid OTP."""

    status_code = 400


class ConcurrentModification(DeliveryError):
    """Delivery is being modified by another request."""

    status_code = 409
