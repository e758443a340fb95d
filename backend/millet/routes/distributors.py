# Overview: Flask API routes for distributor operations; parses input and returns JSON responses.

"""
Distributor routes.

- Distributor management is admin-only
- Stock views, order placement, delivery confirmation and sales are open to
  admin (naming the distributor) and to the distributor's own login
"""
from flask import Blueprint, request, g

from ..errors import ServiceError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_DISTRIBUTOR
from ..services import (
    inventory_service,
    network_service,
    order_service,
    sales_service,
)
from ..validation import coerce_int, split_fields, validate_distributor
from ..decorators import require_auth, require_role
from .common import (
    ok,
    service_error,
    internal_error,
    json_body,
    actor_label,
    resolve_distributor_id,
)

distributors_bp = Blueprint("distributors", __name__)


def _distributor_arg():
    return request.args.get("distributorId") or request.args.get("distributor_id")


@distributors_bp.post("/api/add-distributor")
@require_auth
@require_role(ROLE_ADMIN)
def add_distributor_route():
    """
    Create a distributor and its login.

    Body: name, email, city, warehouse_id, password
    """
    try:
        payload, extra = split_fields(json_body(), "password")
        patch = validate_distributor(payload, partial=False)
        distributor = network_service.create_distributor(patch=patch, password=extra["password"])
        return ok({"distributor": distributor.to_dict()}, status=201, message="Distributor added successfully")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create distributor")


@distributors_bp.get("/api/distributors")
@require_auth
@require_role(ROLE_ADMIN)
def list_distributors_route():
    """Query params: warehouseId (optional filter)"""
    try:
        raw = request.args.get("warehouseId") or request.args.get("warehouse_id")
        warehouse_id = coerce_int(raw, "warehouseId") if raw else None
        distributors = network_service.list_distributors(warehouse_id)
        return ok({"distributors": [d.to_dict() for d in distributors]})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to list distributors")


@distributors_bp.put("/api/distributor/<int:distributor_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_distributor_route(distributor_id: int):
    try:
        patch = validate_distributor(json_body(), partial=True)
        distributor = network_service.update_distributor(distributor_id, patch=patch)
        return ok({"distributor": distributor.to_dict()}, message="Distributor updated")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update distributor")


@distributors_bp.delete("/api/distributor/<int:distributor_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_distributor_route(distributor_id: int):
    try:
        network_service.delete_distributor(distributor_id)
        return ok(message="Distributor deleted")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to delete distributor")


@distributors_bp.get("/api/get-distributor-id")
@require_auth
def get_distributor_id_route():
    try:
        email = request.args.get("email")
        if not email:
            raise ValidationError("Missing email")
        distributor = network_service.find_distributor_by_email(email)
        if g.role == ROLE_DISTRIBUTOR and distributor.id != g.distributor_id:
            return {"success": False, "message": "Permission denied"}, 403
        return ok({"id": distributor.id})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to look up distributor")


@distributors_bp.get("/api/distributor/info")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def distributor_info_route():
    try:
        distributor_id = resolve_distributor_id(_distributor_arg(), name="distributorId")
        distributor = network_service.get_distributor(distributor_id)
        return ok({"distributor": distributor.to_dict()})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load distributor")


@distributors_bp.get("/api/distributor/stock")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def distributor_stock_route():
    try:
        distributor_id = resolve_distributor_id(_distributor_arg(), name="distributorId")
        rows = inventory_service.distributor_stock_view(distributor_id)
        return ok({"distributor_id": distributor_id, "stock": rows})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load distributor stock")


@distributors_bp.get("/api/distributor/products")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def distributor_products_route():
    """Products in stock at the distributor's warehouse."""
    try:
        distributor_id = resolve_distributor_id(_distributor_arg(), name="distributorId")
        rows = inventory_service.distributor_catalogue(distributor_id)
        return ok({"products": rows})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load distributor products")


@distributors_bp.post("/api/distributor/orders")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def place_order_route():
    """
    Place a Pending order with the distributor's warehouse.

    Body: distributor_id (admin only), items: [{product_id, quantity}, ...]
    """
    try:
        data = json_body()
        distributor_id = resolve_distributor_id(data.get("distributor_id"))
        order = order_service.place_order(distributor_id, data.get("items"), actor_label())
        return ok({"order_id": order.id, "order": order.to_dict()}, status=201, message="Order placed successfully")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to place order")


@distributors_bp.get("/api/distributor/orders")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def list_orders_route():
    try:
        distributor_id = resolve_distributor_id(_distributor_arg(), name="distributorId")
        orders = order_service.list_distributor_orders(distributor_id, status=request.args.get("status") or None)
        return ok({"orders": [o.to_dict() for o in orders]})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load distributor orders")


@distributors_bp.post("/api/distributor/confirm-delivery")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def confirm_delivery_route():
    """Shipped -> Delivered. Body: order_id"""
    try:
        order_id = json_body().get("order_id")
        if not order_id:
            raise ValidationError("order_id is required")
        order = order_service.confirm_delivery(
            str(order_id),
            actor_label(),
            distributor_id=g.distributor_id if g.role == ROLE_DISTRIBUTOR else None,
        )
        return ok({"order": order.to_dict()}, message="Delivery confirmed")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to confirm delivery")


@distributors_bp.post("/api/distributor/sales")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def record_sale_route():
    """
    Record a sale and debit distributor stock.

    Body: distributor_id (admin only),
    items: [{product_id, qty, mrp_cents, discount_cents, final_value_cents}, ...]
    """
    try:
        data = json_body()
        distributor_id = resolve_distributor_id(data.get("distributor_id"))
        sale_id = sales_service.record_sale(distributor_id, data.get("items"), actor_label())
        return ok({"sale_id": sale_id}, status=201, message="Sale recorded successfully")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to record sale")


@distributors_bp.get("/api/distributor/sales")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DISTRIBUTOR)
def list_sales_route():
    try:
        distributor_id = resolve_distributor_id(_distributor_arg(), name="distributorId")
        sales = sales_service.list_sales(distributor_id)
        return ok({"sales": [s.to_dict() for s in sales]})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load sales")
