# Overview: Read-only reporting projections for the admin dashboard.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import (
    Product,
    Warehouse,
    Distributor,
    WarehouseInventory,
    DistributorStock,
    Order,
    OrderLine,
    Sale,
    SaleItem,
    CustomerOrder,
    CustomerOrderItem,
)
from .inventory_service import get_warehouse, get_distributor
from .order_service import list_status_history
from millet.time_utils import months_ago, to_utc_z

NO_PRODUCT = {"product": "N/A", "qty": 0}


def admin_summary() -> dict:
    """Entity counts for the dashboard header cards."""
    session = db.session
    return {
        "products": session.query(func.count(Product.id)).scalar() or 0,
        "warehouses": session.query(func.count(Warehouse.id)).scalar() or 0,
        "distributors": session.query(func.count(Distributor.id)).scalar() or 0,
        "sales": session.query(func.count(Sale.id)).scalar() or 0,
        "customer_orders": session.query(func.count(CustomerOrder.id)).scalar() or 0,
        "orders": session.query(func.count(Order.id)).scalar() or 0,
    }


def distributor_sales_totals() -> list[dict]:
    """Units and value sold per distributor and product."""
    rows = (
        db.session.query(
            Distributor.id,
            Distributor.name,
            Product.id,
            Product.name,
            func.sum(SaleItem.qty),
            func.sum(SaleItem.final_value_cents),
        )
        .join(Sale, Sale.distributor_id == Distributor.id)
        .join(SaleItem, SaleItem.sale_id == Sale.id)
        .join(Product, Product.id == SaleItem.product_id)
        .group_by(Distributor.id, Distributor.name, Product.id, Product.name)
        .order_by(Distributor.name.asc(), Product.name.asc())
        .all()
    )
    return [
        {
            "distributor_id": distributor_id,
            "distributor": distributor_name,
            "product_id": product_id,
            "product": product_name,
            "qty": int(qty or 0),
            "total_cents": int(total or 0),
        }
        for distributor_id, distributor_name, product_id, product_name, qty, total in rows
    ]


def order_status_history(limit: int = 50) -> list[dict]:
    return [row.to_dict() for row in list_status_history(limit=limit)]


def _most_sold(totals: dict[str, int]) -> dict:
    if not totals:
        return dict(NO_PRODUCT)
    product, qty = max(totals.items(), key=lambda kv: kv[1])
    return {"product": product, "qty": qty}


def _merge_monthly(*series) -> list[dict]:
    merged: dict[str, int] = {}
    for rows in series:
        for month, amount in rows:
            merged[month] = merged.get(month, 0) + int(amount or 0)
    return [{"month": month, "amount_cents": merged[month]} for month in sorted(merged)]


def warehouse_overview(warehouse_id: int, months: int = 6) -> dict:
    """
    Warehouse dashboard: stock on hand, customer sales, the best seller
    across customer orders and distributor orders, monthly sales for the
    last `months` months, and order history.
    """
    session = db.session
    warehouse = get_warehouse(session, warehouse_id)
    since = months_ago(months)

    total_stock = (
        session.query(func.coalesce(func.sum(WarehouseInventory.qty), 0))
        .filter(WarehouseInventory.warehouse_id == warehouse.id)
        .scalar()
    )

    sales = (
        session.query(CustomerOrderItem, CustomerOrder)
        .join(CustomerOrder, CustomerOrder.id == CustomerOrderItem.customer_order_id)
        .filter(CustomerOrder.warehouse_id == warehouse.id)
        .order_by(CustomerOrder.purchased_at.desc(), CustomerOrderItem.id.asc())
        .all()
    )

    sold: dict[str, int] = {}
    customer_units = (
        session.query(CustomerOrderItem.product_name, func.sum(CustomerOrderItem.quantity))
        .join(CustomerOrder, CustomerOrder.id == CustomerOrderItem.customer_order_id)
        .filter(CustomerOrder.warehouse_id == warehouse.id)
        .group_by(CustomerOrderItem.product_name)
        .all()
    )
    order_units = (
        session.query(Product.name, func.sum(OrderLine.quantity))
        .join(OrderLine, OrderLine.product_id == Product.id)
        .join(Order, Order.id == OrderLine.order_id)
        .filter(Order.warehouse_id == warehouse.id)
        .group_by(Product.name)
        .all()
    )
    for name, qty in list(customer_units) + list(order_units):
        sold[name] = sold.get(name, 0) + int(qty or 0)

    customer_month = func.strftime("%Y-%m", CustomerOrder.purchased_at)
    customer_monthly = (
        session.query(customer_month, func.sum(CustomerOrderItem.selling_price_cents))
        .join(CustomerOrder, CustomerOrder.id == CustomerOrderItem.customer_order_id)
        .filter(CustomerOrder.warehouse_id == warehouse.id, CustomerOrder.purchased_at >= since)
        .group_by(customer_month)
        .all()
    )
    order_month = func.strftime("%Y-%m", Order.created_at)
    order_monthly = (
        session.query(order_month, func.sum(OrderLine.quantity * Product.selling_price_cents))
        .join(OrderLine, OrderLine.order_id == Order.id)
        .join(Product, Product.id == OrderLine.product_id)
        .filter(Order.warehouse_id == warehouse.id, Order.created_at >= since)
        .group_by(order_month)
        .all()
    )

    orders = (
        session.query(Order)
        .filter(Order.warehouse_id == warehouse.id)
        .order_by(Order.created_at.desc())
        .all()
    )

    return {
        "id": warehouse.id,
        "name": warehouse.name,
        "location": warehouse.location,
        "total_stock": int(total_stock or 0),
        "most_sold": _most_sold(sold),
        "monthly_sales": _merge_monthly(customer_monthly, order_monthly),
        "sales": [
            {
                "product": item.product_name,
                "qty": item.quantity,
                "amount_cents": item.selling_price_cents,
                "customer": order.customer_name,
                "date": to_utc_z(order.purchased_at),
            }
            for item, order in sales
        ],
        "orders": [order.to_dict() for order in orders],
    }


def distributor_overview(distributor_id: int, months: int = 6) -> dict:
    """Distributor dashboard: stock, sales history, best seller, monthly sales, incoming orders."""
    session = db.session
    distributor = get_distributor(session, distributor_id)
    since = months_ago(months)

    total_stock = (
        session.query(func.coalesce(func.sum(DistributorStock.qty), 0))
        .filter(DistributorStock.distributor_id == distributor.id)
        .scalar()
    )

    sales = (
        session.query(SaleItem, Sale, Product.name)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .join(Product, Product.id == SaleItem.product_id)
        .filter(Sale.distributor_id == distributor.id)
        .order_by(Sale.created_at.desc(), SaleItem.id.asc())
        .all()
    )

    sold = dict(
        (name, int(qty or 0))
        for name, qty in session.query(Product.name, func.sum(SaleItem.qty))
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.distributor_id == distributor.id)
        .group_by(Product.name)
        .all()
    )

    sale_month = func.strftime("%Y-%m", Sale.created_at)
    monthly = (
        session.query(sale_month, func.sum(Sale.total_cents))
        .filter(Sale.distributor_id == distributor.id, Sale.created_at >= since)
        .group_by(sale_month)
        .all()
    )

    incoming = (
        session.query(Order)
        .filter(Order.distributor_id == distributor.id)
        .order_by(Order.created_at.desc())
        .all()
    )

    return {
        "id": distributor.id,
        "name": distributor.name,
        "email": distributor.email,
        "warehouse_id": distributor.warehouse_id,
        "warehouse": distributor.warehouse.name if distributor.warehouse else None,
        "total_stock": int(total_stock or 0),
        "most_sold": _most_sold(sold),
        "monthly_sales": _merge_monthly(monthly),
        "sales": [
            {
                "sale_id": sale.id,
                "product": product_name,
                "qty": item.qty,
                "amount_cents": item.final_value_cents,
                "date": to_utc_z(sale.created_at),
            }
            for item, sale, product_name in sales
        ],
        "incoming": [order.to_dict() for order in incoming],
    }
