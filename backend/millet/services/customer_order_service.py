# Overview: Service-layer operations for warehouse customer orders (direct counter sales).

"""
Warehouse customer orders.

The counter UI prices the basket and submits header totals together with
the items. Saving debits warehouse inventory for every item through the
shared ledger debit, in the same transaction as the header and items. A
short item raises InsufficientStockError naming the product and nothing is
saved.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..errors import ValidationError
from ..models import CustomerOrder, CustomerOrderItem, Product
from . import stock_service
from .activity_service import append_activity, source_label
from .concurrency import run_in_transaction
from .inventory_service import get_warehouse
from .stock_service import StockLocation
from millet.time_utils import utcnow

logger = logging.getLogger(__name__)

TOTAL_FIELDS = ("total_cents", "discount_cents", "final_cents")


def _cents(value, label: str, default: int | None = 0) -> int:
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative integer")
    return value


def parse_customer_items(items) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Order must contain at least one item")

    parsed = []
    for index, item in enumerate(items):
        label = f"Item {index + 1}"
        if not isinstance(item, dict):
            raise ValidationError(f"{label} must be an object")
        product_id = item.get("product_id")
        quantity = item.get("quantity")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"{label}: product_id must be an integer")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"{label}: quantity must be a positive integer")
        parsed.append({
            "product_id": product_id,
            "quantity": quantity,
            "mrp_cents": _cents(item.get("mrp_cents"), f"{label}: mrp_cents"),
            "discount_cents": _cents(item.get("discount_cents"), f"{label}: discount_cents"),
            "selling_price_cents": _cents(item.get("selling_price_cents"), f"{label}: selling_price_cents", default=None),
        })
    return parsed


def create_customer_order(
    warehouse_id: int,
    customer_name: str,
    items,
    totals: dict | None = None,
    actor: str | None = None,
) -> CustomerOrder:
    """Save a customer order and debit the warehouse for each item."""
    customer_name = (customer_name or "").strip()
    if not customer_name:
        raise ValidationError("customer_name is required")
    parsed = parse_customer_items(items)
    totals = totals or {}
    header_totals = {field: _cents(totals.get(field), field) for field in TOTAL_FIELDS}

    def _op(session):
        warehouse = get_warehouse(session, warehouse_id)
        location = StockLocation.warehouse(warehouse.id)

        product_ids = {item["product_id"] for item in parsed}
        products = {
            p.id: p for p in session.query(Product).filter(Product.id.in_(product_ids)).all()
        }
        unknown = sorted(product_ids - products.keys())
        if unknown:
            raise ValidationError(
                f"Unknown product id(s): {', '.join(str(pid) for pid in unknown)}",
                details={"product_ids": unknown},
            )

        order = CustomerOrder(
            warehouse_id=warehouse.id,
            customer_name=customer_name,
            purchased_at=utcnow(),
            **header_totals,
        )
        session.add(order)
        session.flush()

        session.add_all([
            CustomerOrderItem(
                customer_order_id=order.id,
                product_name=products[item["product_id"]].name,
                **item,
            )
            for item in parsed
        ])

        for item in parsed:
            product = products[item["product_id"]]
            stock_service.debit(session, location, product.id, item["quantity"], product_name=product.name)

        append_activity(
            session,
            source=source_label(warehouse.name, actor),
            description=f"Customer order {order.id} for {customer_name}: {sum(i['quantity'] for i in parsed)} units",
            warehouse_id=warehouse.id,
        )
        session.flush()
        return order

    order = run_in_transaction(_op)
    logger.info(
        "Customer order saved: order=%s warehouse=%s items=%s",
        order.id, order.warehouse_id, len(parsed),
    )
    return order


def list_customer_orders(warehouse_id: int) -> list[CustomerOrder]:
    get_warehouse(db.session, warehouse_id)
    return (
        db.session.query(CustomerOrder)
        .filter(CustomerOrder.warehouse_id == warehouse_id)
        .order_by(CustomerOrder.purchased_at.desc(), CustomerOrder.id.desc())
        .all()
    )
