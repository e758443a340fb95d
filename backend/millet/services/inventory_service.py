# Overview: Service-layer operations for stock receipt and per-location stock views.

"""
Inventory views and warehouse stock receipt.

Quantities come from the stock ledger tables (warehouse_inventory and
distributor_stock). Views list every product so that a pair with no ledger
row shows as 0 rather than disappearing.
"""
from __future__ import annotations

import logging

from sqlalchemy import and_, func

from ..extensions import db
from ..errors import NotFoundError
from ..models import (
    Product,
    Warehouse,
    Distributor,
    WarehouseInventory,
    DistributorStock,
    Order,
    OrderLine,
)
from ..models.orders import ORDER_STATUS_PENDING
from . import stock_service
from .activity_service import append_activity, source_label
from .catalog_service import get_product_by_sku
from .concurrency import run_in_transaction
from .stock_service import StockLocation

logger = logging.getLogger(__name__)


def get_warehouse(session, warehouse_id: int) -> Warehouse:
    warehouse = session.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise NotFoundError(f"Warehouse {warehouse_id} not found")
    return warehouse


def get_distributor(session, distributor_id: int) -> Distributor:
    distributor = session.get(Distributor, distributor_id)
    if distributor is None:
        raise NotFoundError(f"Distributor {distributor_id} not found")
    return distributor


def add_warehouse_stock(warehouse_id: int, sku: str, qty: int, actor: str | None = None) -> dict:
    """
    Receive qty units of the product with this SKU into a warehouse.

    Credits the ledger and appends one activity entry in the same
    transaction. Returns the product and its new quantity on hand.
    """
    def _op(session):
        warehouse = get_warehouse(session, warehouse_id)
        product = get_product_by_sku(session, sku)

        new_qty = stock_service.credit(session, StockLocation.warehouse(warehouse.id), product.id, qty)
        append_activity(
            session,
            source=source_label(warehouse.name, actor),
            description=f"Added {qty} stock for {product.name}",
            warehouse_id=warehouse.id,
        )
        return {
            "warehouse_id": warehouse.id,
            "product_id": product.id,
            "sku": product.sku,
            "product_name": product.name,
            "added": qty,
            "qty": new_qty,
        }

    result = run_in_transaction(_op)
    logger.info(
        "Stock received: warehouse=%s sku=%s qty=%s on_hand=%s",
        warehouse_id, sku, qty, result["qty"],
    )
    return result


def warehouse_inventory(warehouse_id: int) -> list[dict]:
    """Every product with the warehouse's quantity on hand."""
    get_warehouse(db.session, warehouse_id)

    rows = (
        db.session.query(Product, func.coalesce(WarehouseInventory.qty, 0))
        .outerjoin(
            WarehouseInventory,
            and_(
                WarehouseInventory.product_id == Product.id,
                WarehouseInventory.warehouse_id == warehouse_id,
            ),
        )
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [_product_row(product, qty=int(qty)) for product, qty in rows]


def pending_quantities(session, distributor_id: int) -> dict[int, int]:
    """product_id -> quantity still sitting in the distributor's Pending orders."""
    rows = (
        session.query(OrderLine.product_id, func.sum(OrderLine.quantity))
        .join(Order, Order.id == OrderLine.order_id)
        .filter(Order.distributor_id == distributor_id, Order.status == ORDER_STATUS_PENDING)
        .group_by(OrderLine.product_id)
        .all()
    )
    return {product_id: int(total or 0) for product_id, total in rows}


def distributor_stock_view(distributor_id: int) -> list[dict]:
    """Every product with the distributor's available and pending quantity."""
    get_distributor(db.session, distributor_id)

    rows = (
        db.session.query(Product, func.coalesce(DistributorStock.qty, 0))
        .outerjoin(
            DistributorStock,
            and_(
                DistributorStock.product_id == Product.id,
                DistributorStock.distributor_id == distributor_id,
            ),
        )
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    pending = pending_quantities(db.session, distributor_id)
    return [
        _product_row(product, qty=int(qty), pending_qty=pending.get(product.id, 0))
        for product, qty in rows
    ]


def distributor_catalogue(distributor_id: int) -> list[dict]:
    """Products the distributor can order: positive stock at its warehouse."""
    distributor = get_distributor(db.session, distributor_id)

    rows = (
        db.session.query(Product, WarehouseInventory.qty)
        .join(WarehouseInventory, WarehouseInventory.product_id == Product.id)
        .filter(
            WarehouseInventory.warehouse_id == distributor.warehouse_id,
            WarehouseInventory.qty > 0,
        )
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [_product_row(product, qty=int(qty)) for product, qty in rows]


def _product_row(product: Product, **extra) -> dict:
    row = product.to_dict()
    row.update(extra)
    return row
