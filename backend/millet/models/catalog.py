from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    SKU is the business key used by stock intake (POST /api/add-stock) and is
    unique across the catalogue. Prices are stored in cents.

    Identity is immutable; name and pricing may change. A product that any
    distributor order line references cannot be deleted (see catalog_service).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("mrp_cents >= 0", name="ck_products_mrp_nonneg"),
        db.CheckConstraint("selling_price_cents >= 0", name="ck_products_selling_price_nonneg"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    ean = db.Column(db.String(32), nullable=False)
    unit = db.Column(db.String(32), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    mrp_cents = db.Column(db.Integer, nullable=False)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "ean": self.ean,
            "unit": self.unit,
            "mrp_cents": self.mrp_cents,
            "selling_price_cents": self.selling_price_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
