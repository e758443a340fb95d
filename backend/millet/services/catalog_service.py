# backend/millet/services/catalog_service.py
"""
Product catalogue service.

- create_product requires every field; SKU is unique
- update_product only touches name and pricing (identity is immutable)
- delete_product is refused while any order line or sale references the
  product; its stock rows go with it
"""
from __future__ import annotations

from ..extensions import db
from ..errors import ConflictError, NotFoundError
from ..models import (
    Product,
    OrderLine,
    SaleItem,
    CustomerOrderItem,
    WarehouseInventory,
    DistributorStock,
)
from .concurrency import lock_for_update, run_in_transaction

PRODUCT_MUTABLE_FIELDS = {"name", "mrp_cents", "selling_price_cents"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_product_by_sku(session, sku: str) -> Product:
    product = session.query(Product).filter_by(sku=sku).first()
    if product is None:
        raise NotFoundError(f"Product with SKU {sku} not found")
    return product


def create_product(*, patch: dict) -> Product:
    """Create product from a validated patch dict."""
    def _op(session):
        if session.query(Product.id).filter_by(sku=patch["sku"]).first():
            raise ConflictError(f"SKU {patch['sku']} already exists")

        product = Product(
            sku=patch["sku"],
            name=patch["name"],
            ean=patch["ean"],
            unit=patch["unit"],
            mrp_cents=patch["mrp_cents"],
            selling_price_cents=patch["selling_price_cents"],
        )
        session.add(product)
        session.flush()
        return product

    return run_in_transaction(_op)


def update_product(product_id: int, *, patch: dict) -> Product:
    def _op(session):
        product = lock_for_update(session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        apply_product_patch(product, patch)
        session.flush()
        return product

    return run_in_transaction(_op)


def delete_product(product_id: int) -> None:
    """
    Delete a product that no order references.

    Orders persist as history, so a referenced product must stay.
    """
    def _op(session):
        product = lock_for_update(session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        if session.query(OrderLine.id).filter_by(product_id=product_id).first():
            raise ConflictError("Cannot delete this product. There are orders linked to it.")
        if (
            session.query(SaleItem.id).filter_by(product_id=product_id).first()
            or session.query(CustomerOrderItem.id).filter_by(product_id=product_id).first()
        ):
            raise ConflictError("Cannot delete this product. There are sales linked to it.")

        session.query(WarehouseInventory).filter_by(product_id=product_id).delete(synchronize_session=False)
        session.query(DistributorStock).filter_by(product_id=product_id).delete(synchronize_session=False)
        session.delete(product)
        session.flush()

    run_in_transaction(_op)
