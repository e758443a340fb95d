from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z

ORDER_STATUS_PENDING = "Pending"
ORDER_STATUS_SHIPPED = "Shipped"
ORDER_STATUS_DELIVERED = "Delivered"
ORDER_STATUSES = (ORDER_STATUS_PENDING, ORDER_STATUS_SHIPPED, ORDER_STATUS_DELIVERED)


class Order(db.Model):
    """
    Distributor replenishment order.

    LIFECYCLE:
    1. Pending: placed by the distributor, no stock moved yet
    2. Shipped: dispatched by the warehouse, warehouse stock debited
    3. Delivered: confirmed by the distributor, distributor stock credited

    One aggregate serves both the warehouse view (incoming orders) and the
    distributor view (order history); they differ only in which foreign key
    the query filters on. Orders are never deleted.

    The id is a generated UUID shared by every line of the batch.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('Pending', 'Shipped', 'Delivered')",
            name="ck_orders_status",
        ),
        db.Index("ix_orders_warehouse_status_created", "warehouse_id", "status", "created_at"),
        db.Index("ix_orders_distributor_created", "distributor_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)

    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_PENDING, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)

    warehouse = db.relationship("Warehouse")
    distributor = db.relationship("Distributor")
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        order_by="OrderLine.id",
    )

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status} warehouse_id={self.warehouse_id} distributor_id={self.distributor_id}>"

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "order_id": self.id,
            "warehouse_id": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "distributor_id": self.distributor_id,
            "distributor": self.distributor.name if self.distributor else None,
            "status": self.status,
            "total_quantity": self.total_quantity,
            "created_at": to_utc_z(self.created_at),
            "shipped_at": to_utc_z(self.shipped_at) if self.shipped_at else None,
            "delivered_at": to_utc_z(self.delivered_at) if self.delivered_at else None,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class OrderLine(db.Model):
    """One product and quantity on an order. Quantities are fixed at placement."""
    __tablename__ = "order_lines"
    __table_args__ = (
        db.UniqueConstraint("order_id", "product_id", name="uq_order_lines_order_product"),
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "sku": self.product.sku if self.product else None,
            "quantity": self.quantity,
        }


class OrderStatusHistory(db.Model):
    """
    Append-only history of order status changes.

    One row per successful transition, written in the same transaction as the
    transition itself. from_status is null for the placement row.
    """
    __tablename__ = "order_status_history"
    __table_args__ = (
        db.Index("ix_order_status_history_order_created", "order_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)

    from_status = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(16), nullable=False)
    total_quantity = db.Column(db.Integer, nullable=False)

    # Who performed the transition, e.g. "Central Depot (warehouse)"
    actor = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    order = db.relationship("Order", backref=db.backref("history", lazy=True, order_by="OrderStatusHistory.id"))
    warehouse = db.relationship("Warehouse")
    distributor = db.relationship("Distributor")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "warehouse_id": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "distributor_id": self.distributor_id,
            "distributor": self.distributor.name if self.distributor else None,
            "from_status": self.from_status,
            "status": self.status,
            "total_quantity": self.total_quantity,
            "actor": self.actor,
            "created_at": to_utc_z(self.created_at),
        }
