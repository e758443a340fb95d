from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z


class Sale(db.Model):
    """
    Distributor-to-customer sale.

    total_cents is the sum of the items' final_value_cents. Recording a sale
    debits distributor stock in the same transaction (services/sales_service.py).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_distributor_created", "distributor_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    total_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    distributor = db.relationship("Distributor")
    items = db.relationship("SaleItem", backref="sale", lazy=True, order_by="SaleItem.id")

    def to_dict(self) -> dict:
        return {
            "sale_id": self.id,
            "distributor_id": self.distributor_id,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "items": [item.to_dict() for item in self.items],
        }


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("qty > 0", name="ck_sale_items_qty_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    qty = db.Column(db.Integer, nullable=False)
    mrp_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    final_value_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "qty": self.qty,
            "mrp_cents": self.mrp_cents,
            "discount_cents": self.discount_cents,
            "final_value_cents": self.final_value_cents,
        }


class CustomerOrder(db.Model):
    """
    Warehouse-to-customer sale.

    Header totals are supplied by the caller (the counter UI prices the
    basket); saving the order debits warehouse inventory for every item in
    the same transaction.
    """
    __tablename__ = "customer_orders"
    __table_args__ = (
        db.Index("ix_customer_orders_warehouse_purchased", "warehouse_id", "purchased_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    final_cents = db.Column(db.Integer, nullable=False, default=0)
    purchased_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    warehouse = db.relationship("Warehouse")
    items = db.relationship("CustomerOrderItem", backref="customer_order", lazy=True, order_by="CustomerOrderItem.id")

    def to_dict(self) -> dict:
        return {
            "order_id": self.id,
            "warehouse_id": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "customer_name": self.customer_name,
            "total_cents": self.total_cents,
            "discount_cents": self.discount_cents,
            "final_cents": self.final_cents,
            "purchased_at": to_utc_z(self.purchased_at),
            "items": [item.to_dict() for item in self.items],
        }


class CustomerOrderItem(db.Model):
    __tablename__ = "customer_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_customer_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_order_id = db.Column(db.Integer, db.ForeignKey("customer_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Name snapshot at sale time
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    mrp_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "mrp_cents": self.mrp_cents,
            "discount_cents": self.discount_cents,
            "selling_price_cents": self.selling_price_cents,
        }
