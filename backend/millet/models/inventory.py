from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z


class WarehouseInventory(db.Model):
    """
    Quantity on hand for one (warehouse, product) pair.

    Rows are mutated only through services/stock_service.py. Absence of a
    row means "never stocked" and reads as zero.
    """
    __tablename__ = "warehouse_inventory"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "product_id", name="uq_warehouse_inventory_pair"),
        db.CheckConstraint("qty >= 0", name="ck_warehouse_inventory_qty_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    qty = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    warehouse = db.relationship("Warehouse")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "warehouse_id": self.warehouse_id,
            "product_id": self.product_id,
            "qty": self.qty,
            "updated_at": to_utc_z(self.updated_at),
        }


class DistributorStock(db.Model):
    """Quantity on hand for one (distributor, product) pair. Same rules as WarehouseInventory."""
    __tablename__ = "distributor_stock"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "product_id", name="uq_distributor_stock_pair"),
        db.CheckConstraint("qty >= 0", name="ck_distributor_stock_qty_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    qty = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    distributor = db.relationship("Distributor")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "distributor_id": self.distributor_id,
            "product_id": self.product_id,
            "qty": self.qty,
            "updated_at": to_utc_z(self.updated_at),
        }
