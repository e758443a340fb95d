# Overview: Service error taxonomy shared by services and routes.

"""
Every business failure raised by a service is a ServiceError subclass.

Routes translate them into the JSON envelope {"success": false, "message": ...}
with the class' status_code. Anything that is not a ServiceError is an
unexpected fault and answers 500 after the session is rolled back.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for failures surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(ServiceError, LookupError):
    """Unknown id."""
    status_code = 404


class ConflictError(ServiceError):
    """Duplicate unique key, or a delete blocked by existing references."""
    status_code = 400


class InvalidTransitionError(ServiceError):
    """Order transition attempted from the wrong source status."""
    status_code = 400

    def __init__(self, order_id: str, current_status: str, target_status: str):
        super().__init__(
            f"Order {order_id} is {current_status}; cannot move to {target_status}",
            details={
                "order_id": order_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )
        self.order_id = order_id
        self.current_status = current_status
        self.target_status = target_status


class InsufficientStockError(ServiceError):
    """A ledger debit would take quantity on hand below zero."""
    status_code = 400

    def __init__(self, product_id: int, requested: int, available: int, product_name: str | None = None):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}: available {available}, requested {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InternalError(ServiceError):
    """Store unavailable or unexpected fault."""
    status_code = 500


class ForbiddenError(ServiceError):
    """Authenticated caller acting outside its own warehouse or distributor."""
    status_code = 403
