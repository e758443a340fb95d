# Overview: Service-layer operations for distributor sales; converts distributor stock into revenue records.

"""
Sales Recorder

record_sale is one transaction:
1. every item is checked against distributor stock before anything is
   written (InsufficientStockError names the first short product)
2. the header total is the sum of the items' final_value_cents
3. header, items and ledger debits are written together
4. one activity entry per item sold

The ledger debit re-checks atomically, so a concurrent sale that drains the
stock between the pre-check and the debit still rolls the whole sale back.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..errors import ValidationError
from ..models import Product, Sale, SaleItem
from . import stock_service
from .activity_service import append_activity, source_label
from .concurrency import run_in_transaction
from .inventory_service import get_distributor
from .stock_service import StockLocation

logger = logging.getLogger(__name__)


def _non_negative_int(value, field: str, index: int, default: int | None = None) -> int:
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"Item {index + 1}: {field} must be a non-negative integer")
    return value


def parse_sale_items(items) -> list[dict]:
    """Validate [{"product_id", "qty", "mrp_cents", "discount_cents", "final_value_cents"}]."""
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one sale item is required")

    parsed = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index + 1} must be an object")
        product_id = item.get("product_id")
        qty = item.get("qty")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"Item {index + 1}: product_id must be an integer")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(f"Item {index + 1}: qty must be a positive integer")
        parsed.append({
            "product_id": product_id,
            "qty": qty,
            "mrp_cents": _non_negative_int(item.get("mrp_cents"), "mrp_cents", index, default=0),
            "discount_cents": _non_negative_int(item.get("discount_cents"), "discount_cents", index, default=0),
            "final_value_cents": _non_negative_int(item.get("final_value_cents"), "final_value_cents", index),
        })
    return parsed


def record_sale(distributor_id: int, items, actor: str | None = None) -> int:
    """
    Record a distributor-to-customer sale and debit distributor stock.

    Returns the new sale id.
    """
    parsed = parse_sale_items(items)

    def _op(session):
        distributor = get_distributor(session, distributor_id)
        location = StockLocation.distributor(distributor.id)

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

        # Repeated products must be covered in total, not item by item
        requested: dict[int, int] = {}
        for item in parsed:
            requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["qty"]
        for product_id, qty in requested.items():
            stock_service.check_available(
                session, location, product_id, qty, product_name=products[product_id].name
            )

        sale = Sale(
            distributor_id=distributor.id,
            total_cents=sum(item["final_value_cents"] for item in parsed),
        )
        session.add(sale)
        session.flush()

        source = source_label(distributor.name, actor)
        for item in parsed:
            product = products[item["product_id"]]
            session.add(SaleItem(sale_id=sale.id, **item))
            stock_service.debit(session, location, product.id, item["qty"], product_name=product.name)
            append_activity(
                session,
                source=source,
                description=f"Sold {item['qty']} of {product.name} (sale {sale.id})",
                distributor_id=distributor.id,
            )
        session.flush()
        return sale.id

    sale_id = run_in_transaction(_op)
    logger.info(
        "Sale recorded: sale=%s distributor=%s items=%s",
        sale_id, distributor_id, len(parsed),
    )
    return sale_id


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def list_sales(distributor_id: int) -> list[Sale]:
    """Sales history for a distributor, newest first, items attached."""
    get_distributor(db.session, distributor_id)
    return (
        db.session.query(Sale)
        .filter(Sale.distributor_id == distributor_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
