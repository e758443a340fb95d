# Overview: Flask API routes for admin operations; order overrides and reporting projections.

"""
Admin routes.

All routes are admin-only. Reports are read-only projections; the order
status override runs the same pipeline transitions as the warehouse and
distributor endpoints.
"""
from flask import Blueprint, current_app, request

from ..errors import ServiceError, ValidationError
from ..models.auth import ROLE_ADMIN
from ..services import activity_service, order_service, reporting_service
from ..decorators import require_auth, require_role
from .common import ok, service_error, internal_error, json_body, actor_label

admin_bp = Blueprint("admin", __name__)


def _update_order_status(order_id: str):
    try:
        status = json_body().get("status")
        if not status:
            raise ValidationError("status is required")
        order = order_service.update_order_status(order_id, status, actor_label())
        return ok({"order": order.to_dict()}, message=f"Order marked {order.status}")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update order status")


@admin_bp.put("/api/admin/orders/<order_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_order_status_route(order_id: str):
    """
    Advance an order to its next status.

    Body: status (Shipped from Pending, Delivered from Shipped)
    """
    return _update_order_status(order_id)


@admin_bp.put("/orders/<order_id>")
@require_auth
@require_role(ROLE_ADMIN)
def legacy_update_order_status_route(order_id: str):
    return _update_order_status(order_id)


@admin_bp.get("/api/admin/activity-logs")
@require_auth
@require_role(ROLE_ADMIN)
def activity_logs_route():
    try:
        entries = activity_service.list_activity(limit=current_app.config["ACTIVITY_LOG_LIMIT"])
        return ok({"logs": [e.to_dict() for e in entries]})
    except Exception:
        return internal_error("Failed to load activity logs")


@admin_bp.get("/api/admin/order-status")
@require_auth
@require_role(ROLE_ADMIN)
def order_status_route():
    """Latest order status history rows."""
    try:
        limit = request.args.get("limit", default=50, type=int)
        return ok({"history": reporting_service.order_status_history(limit=max(1, min(limit, 500)))})
    except Exception:
        return internal_error("Failed to load order status history")


@admin_bp.get("/api/admin/summary")
@require_auth
@require_role(ROLE_ADMIN)
def summary_route():
    try:
        return ok({"summary": reporting_service.admin_summary()})
    except Exception:
        return internal_error("Failed to load summary")


@admin_bp.get("/api/admin/distributor-sales")
@require_auth
@require_role(ROLE_ADMIN)
def distributor_sales_route():
    try:
        return ok({"sales": reporting_service.distributor_sales_totals()})
    except Exception:
        return internal_error("Failed to load distributor sales")


@admin_bp.get("/api/admin/warehouse-overview/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN)
def warehouse_overview_route(warehouse_id: int):
    try:
        overview = reporting_service.warehouse_overview(
            warehouse_id, months=current_app.config["REPORT_MONTHS"]
        )
        return ok({"overview": overview})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load warehouse overview")


@admin_bp.get("/api/admin/distributor-overview/<int:distributor_id>")
@require_auth
@require_role(ROLE_ADMIN)
def distributor_overview_route(distributor_id: int):
    try:
        overview = reporting_service.distributor_overview(
            distributor_id, months=current_app.config["REPORT_MONTHS"]
        )
        return ok({"overview": overview})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load distributor overview")
