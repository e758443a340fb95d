# Overview: Flask API routes for warehouse operations; parses input and returns JSON responses.

"""
Warehouse routes.

- Warehouse management (create/update/delete/list) is admin-only
- Inventory, stock intake, dispatch, customer orders and activity logs are
  open to admin (naming the warehouse) and to the warehouse's own login
"""
from flask import Blueprint, current_app, request, g

from ..errors import ServiceError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_WAREHOUSE
from ..services import (
    activity_service,
    customer_order_service,
    inventory_service,
    network_service,
    order_service,
)
from ..validation import coerce_int, split_fields, validate_warehouse
from ..decorators import require_auth, require_role
from .common import (
    ok,
    service_error,
    internal_error,
    json_body,
    actor_label,
    resolve_warehouse_id,
)

warehouses_bp = Blueprint("warehouses", __name__)


def _warehouse_arg():
    return request.args.get("warehouseId") or request.args.get("warehouse_id")


def _create_warehouse():
    try:
        payload, extra = split_fields(json_body(), "password")
        patch = validate_warehouse(payload, partial=False)
        warehouse = network_service.create_warehouse(patch=patch, password=extra["password"])
        return ok({"warehouse": warehouse.to_dict()}, status=201, message="Warehouse added successfully")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create warehouse")


@warehouses_bp.post("/api/warehouse")
@require_auth
@require_role(ROLE_ADMIN)
def create_warehouse_route():
    """
    Create a warehouse and its login.

    Body: name, location, email, password
    """
    return _create_warehouse()


@warehouses_bp.post("/add-warehouse")
@require_auth
@require_role(ROLE_ADMIN)
def add_warehouse_route():
    return _create_warehouse()


@warehouses_bp.get("/api/warehouses")
@require_auth
@require_role(ROLE_ADMIN)
def list_warehouses_route():
    try:
        warehouses = network_service.list_warehouses()
        return ok({"warehouses": [w.to_dict() for w in warehouses]})
    except Exception:
        return internal_error("Failed to list warehouses")


@warehouses_bp.put("/api/warehouse/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_warehouse_route(warehouse_id: int):
    try:
        patch = validate_warehouse(json_body(), partial=True)
        warehouse = network_service.update_warehouse(warehouse_id, patch=patch)
        return ok({"warehouse": warehouse.to_dict()}, message="Warehouse updated")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update warehouse")


@warehouses_bp.delete("/api/warehouse/<int:warehouse_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_warehouse_route(warehouse_id: int):
    try:
        network_service.delete_warehouse(warehouse_id)
        return ok(message="Warehouse deleted")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to delete warehouse")


@warehouses_bp.get("/api/get-warehouse-id")
@require_auth
def get_warehouse_id_route():
    """Look up a warehouse id and name by its login email."""
    try:
        email = request.args.get("email")
        if not email:
            raise ValidationError("Missing email")
        warehouse = network_service.find_warehouse_by_email(email)
        if g.role == ROLE_WAREHOUSE and warehouse.id != g.warehouse_id:
            return {"success": False, "message": "Permission denied"}, 403
        return ok({"id": warehouse.id, "name": warehouse.name})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to look up warehouse")


@warehouses_bp.get("/api/warehouse/inventory")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def warehouse_inventory_route():
    try:
        warehouse_id = resolve_warehouse_id(_warehouse_arg(), name="warehouseId")
        rows = inventory_service.warehouse_inventory(warehouse_id)
        return ok({"warehouse_id": warehouse_id, "inventory": rows})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load warehouse inventory")


@warehouses_bp.post("/api/add-stock")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def add_stock_route():
    """
    Receive stock into a warehouse.

    Body: warehouse_id (admin only), sku, qty (> 0)
    """
    try:
        data = json_body()
        warehouse_id = resolve_warehouse_id(data.get("warehouse_id"))
        sku = (data.get("sku") or "").strip()
        if not sku:
            raise ValidationError("sku is required")
        if data.get("qty") is None:
            raise ValidationError("qty is required")
        qty = coerce_int(data.get("qty"), "qty")

        result = inventory_service.add_warehouse_stock(warehouse_id, sku, qty, actor=actor_label())
        return ok({"stock": result}, message="Stock added")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to add stock")


@warehouses_bp.get("/api/warehouse/incoming_orders")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def incoming_orders_route():
    """
    Distributor orders routed to the warehouse.

    Query params:
    - warehouseId: int (admin only)
    - status: Pending | Shipped | Delivered (optional)
    """
    try:
        warehouse_id = resolve_warehouse_id(_warehouse_arg(), name="warehouseId")
        result = order_service.list_warehouse_orders(warehouse_id, status=request.args.get("status") or None)
        return ok({
            "orders": [o.to_dict() for o in result["orders"]],
            "summary": result["summary"],
        })
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load incoming orders")


@warehouses_bp.post("/api/warehouse/dispatch")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def dispatch_route():
    """Pending -> Shipped. Body: order_id"""
    try:
        order_id = json_body().get("order_id")
        if not order_id:
            raise ValidationError("order_id is required")
        order = order_service.dispatch_order(
            str(order_id),
            actor_label(),
            warehouse_id=g.warehouse_id if g.role == ROLE_WAREHOUSE else None,
        )
        return ok({"order": order.to_dict()}, message="Order dispatched successfully")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to dispatch order")


@warehouses_bp.post("/api/warehouse/orders")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def create_customer_order_route():
    """
    Save a customer (counter) order and debit warehouse stock.

    Body: warehouse_id (admin only), customer_name, items[], total_cents,
    discount_cents, final_cents
    """
    try:
        data = json_body()
        warehouse_id = resolve_warehouse_id(data.get("warehouse_id"))
        order = customer_order_service.create_customer_order(
            warehouse_id,
            data.get("customer_name"),
            data.get("items"),
            totals={k: data.get(k) for k in customer_order_service.TOTAL_FIELDS},
            actor=actor_label(),
        )
        return ok({"order_id": order.id, "order": order.to_dict()}, status=201, message="Order saved")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to save customer order")


@warehouses_bp.get("/api/warehouse/orders")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def list_customer_orders_route():
    try:
        warehouse_id = resolve_warehouse_id(_warehouse_arg(), name="warehouseId")
        orders = customer_order_service.list_customer_orders(warehouse_id)
        return ok({"orders": [o.to_dict() for o in orders]})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load customer orders")


@warehouses_bp.get("/api/activity-logs")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def list_activity_route():
    """Latest activity; a warehouse login only sees its own entries."""
    try:
        warehouse_id = None
        if g.role == ROLE_WAREHOUSE or _warehouse_arg():
            warehouse_id = resolve_warehouse_id(_warehouse_arg(), name="warehouseId")
        entries = activity_service.list_activity(
            warehouse_id=warehouse_id,
            limit=current_app.config["ACTIVITY_LOG_LIMIT"],
        )
        return ok({"logs": [e.to_dict() for e in entries]})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load activity logs")


@warehouses_bp.post("/api/activity-logs")
@require_auth
@require_role(ROLE_ADMIN, ROLE_WAREHOUSE)
def add_activity_route():
    """Body: warehouse_id (admin only), user_name, description"""
    try:
        data = json_body()
        warehouse_id = resolve_warehouse_id(data.get("warehouse_id"))
        entry = activity_service.record_manual_activity(
            warehouse_id=warehouse_id,
            user_name=data.get("user_name"),
            description=data.get("description"),
        )
        return ok({"log": entry.to_dict()}, status=201, message="Activity logged")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to add activity log")
