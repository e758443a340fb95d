# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/millet/routes/products.py
"""
Product catalogue routes.

SECURITY: All routes require authentication.
- Read operations are open to every role
- Write operations are admin-only
"""
from flask import Blueprint

from ..errors import ServiceError
from ..models.auth import ROLE_ADMIN
from ..services import catalog_service
from ..validation import validate_product
from ..decorators import require_auth, require_role
from .common import ok, service_error, internal_error, json_body

products_bp = Blueprint("products", __name__, url_prefix="/api")


@products_bp.get("/products")
@require_auth
def list_products():
    try:
        products = catalog_service.list_products()
        return ok({"products": [p.to_dict() for p in products]})
    except Exception:
        return internal_error("Failed to list products")


@products_bp.get("/product/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
        return ok({"product": product.to_dict()})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to load product")


@products_bp.post("/product")
@require_auth
@require_role(ROLE_ADMIN)
def create_product():
    """
    Create a product.

    Required: sku, name, ean, unit, mrp_cents, selling_price_cents
    """
    try:
        patch = validate_product(json_body(), partial=False)
        product = catalog_service.create_product(patch=patch)
        return ok({"product": product.to_dict()}, status=201, message="Product added")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create product")


@products_bp.put("/product/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product(product_id: int):
    """Update name and pricing; sku, ean and unit are fixed."""
    try:
        patch = validate_product(json_body(), partial=True)
        product = catalog_service.update_product(product_id, patch=patch)
        return ok({"product": product.to_dict()}, message="Product updated")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update product")


@products_bp.delete("/product/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product(product_id: int):
    try:
        catalog_service.delete_product(product_id)
        return ok(message="Product deleted")
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to delete product")
