# Overview: Shared response and scoping helpers for the API blueprints.

from flask import current_app, g, jsonify, request

from ..extensions import db
from ..errors import ForbiddenError, InternalError, ServiceError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_WAREHOUSE, ROLE_DISTRIBUTOR
from ..validation import coerce_int


def ok(payload: dict | None = None, status: int = 200, message: str = "OK"):
    body = {"success": True, "message": message}
    if payload:
        body.update(payload)
    return jsonify(body), status


def service_error(e: ServiceError):
    db.session.rollback()
    return jsonify(e.to_dict()), e.status_code


def internal_error(log_message: str):
    """Log the active exception and answer 500."""
    current_app.logger.exception(log_message)
    db.session.rollback()
    return jsonify(InternalError("Internal server error").to_dict()), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def actor_label() -> str:
    """Who is acting, as shown in activity sources, e.g. "Admin"."""
    return (g.role or "").capitalize()


def _requested_id(value, name: str) -> int | None:
    if value in (None, ""):
        return None
    return coerce_int(value, name)


def resolve_warehouse_id(requested=None, *, name: str = "warehouse_id") -> int:
    """
    Warehouse the request acts on.

    A warehouse login always acts on its own warehouse; an admin must name one.
    """
    requested = _requested_id(requested, name)
    if g.role == ROLE_WAREHOUSE:
        if requested is not None and requested != g.warehouse_id:
            raise ForbiddenError("Cannot act on another warehouse")
        return g.warehouse_id
    if g.role == ROLE_ADMIN:
        if requested is None:
            raise ValidationError(f"{name} is required")
        return requested
    raise ForbiddenError("Permission denied")


def resolve_distributor_id(requested=None, *, name: str = "distributor_id") -> int:
    """Distributor the request acts on; same rules as resolve_warehouse_id."""
    requested = _requested_id(requested, name)
    if g.role == ROLE_DISTRIBUTOR:
        if requested is not None and requested != g.distributor_id:
            raise ForbiddenError("Cannot act on another distributor")
        return g.distributor_id
    if g.role == ROLE_ADMIN:
        if requested is None:
            raise ValidationError(f"{name} is required")
        return requested
    raise ForbiddenError("Permission denied")
