# Overview: Service-layer operations for distributor orders; the Pending -> Shipped -> Delivered pipeline.

"""
Distributor order pipeline.

LIFECYCLE:
1. Pending: placed by the distributor (place_order). No stock moves.
2. Shipped: dispatched by the warehouse (dispatch_order). Warehouse stock is
   debited for every line.
3. Delivered: confirmed by the distributor (confirm_delivery). Distributor
   stock is credited for every line. Terminal.

Every transition runs in one transaction:
- the order row is read FOR UPDATE and its status checked against the
  expected predecessor (InvalidTransitionError otherwise, nothing written)
- ledger movements for all lines
- the status flip, itself a conditional UPDATE on the predecessor status
- exactly one OrderStatusHistory row and one ActivityLog entry

Any failure rolls the whole unit back, so a failed dispatch never leaves a
partial debit behind.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import func

from ..extensions import db
from ..errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models import Order, OrderLine, OrderStatusHistory, Product
from ..models.orders import (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUSES,
)
from . import stock_service
from .activity_service import append_activity, source_label
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import get_distributor
from .stock_service import StockLocation
from millet.time_utils import utcnow

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def generate_order_id() -> str:
    return str(uuid.uuid4())


def merge_order_items(items) -> list[tuple[int, int]]:
    """
    Normalise [{"product_id", "quantity"}, ...] into (product_id, quantity)
    pairs, summing repeated products. Order of first appearance is kept.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one order item is required")

    merged: dict[int, int] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index + 1} must be an object")
        product_id = item.get("product_id")
        quantity = item.get("quantity")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"Item {index + 1}: product_id must be an integer")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Item {index + 1}: quantity must be a positive integer")
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


def get_order(order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def _lock_order(session, order_id: str) -> Order:
    order = lock_for_update(session.query(Order).filter(Order.id == order_id)).first()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def _flip_status(session, order: Order, expected: str, target: str, **stamps) -> None:
    """Conditional status update; fails if another transaction moved the order first."""
    values = {Order.status: target}
    for column, value in stamps.items():
        values[getattr(Order, column)] = value

    updated = (
        session.query(Order)
        .filter(Order.id == order.id, Order.status == expected)
        .update(values, synchronize_session="fetch")
    )
    if updated != 1:
        session.refresh(order)
        raise InvalidTransitionError(order.id, order.status, target)
    session.flush()


def _lines_summary(order: Order) -> str:
    return ", ".join(
        f"{line.product.name if line.product else line.product_id} x{line.quantity}"
        for line in order.lines
    )


def _record_transition(
    session,
    order: Order,
    *,
    from_status: str | None,
    to_status: str,
    source: str,
    description: str,
) -> OrderStatusHistory:
    """One history row plus one activity entry for a committed-together transition."""
    history = OrderStatusHistory(
        order_id=order.id,
        warehouse_id=order.warehouse_id,
        distributor_id=order.distributor_id,
        from_status=from_status,
        status=to_status,
        total_quantity=order.total_quantity,
        actor=source,
    )
    session.add(history)
    append_activity(
        session,
        source=source,
        description=description,
        warehouse_id=order.warehouse_id,
        distributor_id=order.distributor_id,
    )
    session.flush()
    return history


def place_order(distributor_id: int, items, actor: str | None = None) -> Order:
    """
    Place a Pending order routed to the distributor's assigned warehouse.

    All items share one generated order id. Raises ValidationError for a
    non-positive quantity or an unknown product.
    """
    lines = merge_order_items(items)

    def _op(session):
        distributor = get_distributor(session, distributor_id)

        product_ids = [product_id for product_id, _ in lines]
        products = {
            p.id: p for p in session.query(Product).filter(Product.id.in_(product_ids)).all()
        }
        unknown = [pid for pid in product_ids if pid not in products]
        if unknown:
            raise ValidationError(
                f"Unknown product id(s): {', '.join(str(pid) for pid in unknown)}",
                details={"product_ids": unknown},
            )

        order = Order(
            id=generate_order_id(),
            warehouse_id=distributor.warehouse_id,
            distributor_id=distributor.id,
            status=ORDER_STATUS_PENDING,
            created_at=utcnow(),
        )
        session.add(order)
        for product_id, quantity in lines:
            order.lines.append(OrderLine(product_id=product_id, quantity=quantity))
        session.flush()

        _record_transition(
            session,
            order,
            from_status=None,
            to_status=ORDER_STATUS_PENDING,
            source=source_label(distributor.name, actor),
            description=f"Placed order {order.id}: {_lines_summary(order)}",
        )
        return order

    order = run_in_transaction(_op)
    logger.info(
        "Order placed: order=%s distributor=%s warehouse=%s units=%s",
        order.id, order.distributor_id, order.warehouse_id, order.total_quantity,
    )
    return order


def dispatch_order(order_id: str, actor: str | None = None, *, warehouse_id: int | None = None) -> Order:
    """
    Pending -> Shipped. Debits the warehouse for every line.

    warehouse_id, when given, must be the order's warehouse (a warehouse
    login can only ship its own orders). InsufficientStockError for any line
    aborts the whole dispatch.
    """
    def _op(session):
        order = _lock_order(session, order_id)
        if warehouse_id is not None and order.warehouse_id != warehouse_id:
            raise ForbiddenError(f"Order {order_id} belongs to another warehouse")
        if order.status != ORDER_STATUS_PENDING:
            raise InvalidTransitionError(order.id, order.status, ORDER_STATUS_SHIPPED)

        location = StockLocation.warehouse(order.warehouse_id)
        for line in order.lines:
            stock_service.debit(
                session,
                location,
                line.product_id,
                line.quantity,
                product_name=line.product.name if line.product else None,
            )

        _flip_status(session, order, ORDER_STATUS_PENDING, ORDER_STATUS_SHIPPED, shipped_at=utcnow())
        _record_transition(
            session,
            order,
            from_status=ORDER_STATUS_PENDING,
            to_status=ORDER_STATUS_SHIPPED,
            source=source_label(order.warehouse.name, actor),
            description=f"Order {order.id} {ORDER_STATUS_SHIPPED}: {_lines_summary(order)}",
        )
        return order

    order = run_in_transaction(_op)
    logger.info(
        "Order dispatched: order=%s warehouse=%s units=%s",
        order.id, order.warehouse_id, order.total_quantity,
    )
    return order


def confirm_delivery(order_id: str, actor: str | None = None, *, distributor_id: int | None = None) -> Order:
    """
    Shipped -> Delivered. Credits the distributor for every line.

    A second confirmation finds the order Delivered and is rejected with
    InvalidTransitionError, so stock is credited exactly once.
    """
    def _op(session):
        order = _lock_order(session, order_id)
        if distributor_id is not None and order.distributor_id != distributor_id:
            raise ForbiddenError(f"Order {order_id} belongs to another distributor")
        if order.status != ORDER_STATUS_SHIPPED:
            raise InvalidTransitionError(order.id, order.status, ORDER_STATUS_DELIVERED)

        location = StockLocation.distributor(order.distributor_id)
        for line in order.lines:
            stock_service.credit(session, location, line.product_id, line.quantity)

        _flip_status(session, order, ORDER_STATUS_SHIPPED, ORDER_STATUS_DELIVERED, delivered_at=utcnow())
        _record_transition(
            session,
            order,
            from_status=ORDER_STATUS_SHIPPED,
            to_status=ORDER_STATUS_DELIVERED,
            source=source_label(order.distributor.name, actor),
            description=f"Order {order.id} {ORDER_STATUS_DELIVERED}: {_lines_summary(order)}",
        )
        return order

    order = run_in_transaction(_op)
    logger.info(
        "Order delivered: order=%s distributor=%s units=%s",
        order.id, order.distributor_id, order.total_quantity,
    )
    return order


def update_order_status(order_id: str, status: str, actor: str | None = None) -> Order:
    """
    Admin override: advance an order to its next status.

    Shipped runs the full dispatch, Delivered runs the full delivery
    confirmation; anything else is an invalid transition.
    """
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")

    if status == ORDER_STATUS_SHIPPED:
        return dispatch_order(order_id, actor)
    if status == ORDER_STATUS_DELIVERED:
        return confirm_delivery(order_id, actor)

    order = get_order(order_id)
    raise InvalidTransitionError(order.id, order.status, status)


def _validate_status_filter(status: str | None) -> None:
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ORDER_STATUSES)}")


def status_summary(*, warehouse_id: int | None = None, distributor_id: int | None = None) -> dict:
    """Order count per status, every status present."""
    query = db.session.query(Order.status, func.count(Order.id))
    if warehouse_id is not None:
        query = query.filter(Order.warehouse_id == warehouse_id)
    if distributor_id is not None:
        query = query.filter(Order.distributor_id == distributor_id)
    counts = dict(query.group_by(Order.status).all())
    return {status: int(counts.get(status, 0)) for status in ORDER_STATUSES}


def list_warehouse_orders(warehouse_id: int, status: str | None = None) -> dict:
    """Incoming orders for a warehouse, newest first, plus the per-status summary."""
    _validate_status_filter(status)
    query = db.session.query(Order).filter(Order.warehouse_id == warehouse_id)
    if status is not None:
        query = query.filter(Order.status == status)
    orders = query.order_by(Order.created_at.desc()).all()
    return {
        "orders": orders,
        "summary": status_summary(warehouse_id=warehouse_id),
    }


def list_distributor_orders(distributor_id: int, status: str | None = None) -> list[Order]:
    _validate_status_filter(status)
    query = db.session.query(Order).filter(Order.distributor_id == distributor_id)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc()).all()


def list_status_history(
    *,
    limit: int = HISTORY_LIMIT,
    warehouse_id: int | None = None,
    distributor_id: int | None = None,
    order_id: str | None = None,
) -> list[OrderStatusHistory]:
    query = db.session.query(OrderStatusHistory)
    if warehouse_id is not None:
        query = query.filter(OrderStatusHistory.warehouse_id == warehouse_id)
    if distributor_id is not None:
        query = query.filter(OrderStatusHistory.distributor_id == distributor_id)
    if order_id is not None:
        query = query.filter(OrderStatusHistory.order_id == order_id)
    return (
        query.order_by(OrderStatusHistory.created_at.desc(), OrderStatusHistory.id.desc())
        .limit(limit)
        .all()
    )
