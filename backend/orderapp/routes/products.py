# Overview: Flask API routes for product master data; parses input and returns JSON responses.

"""
Product management routes, keyed by product code.

SECURITY: All routes require authentication.
- Read operations: any authenticated user
- Write operations: Administrator role
"""
from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import ROLE_ADMINISTRATOR
from ..repositories import ProductRepository, StoreError
from ..validation import ConflictError, ValidationError
from .common import json_payload, list_args, reject_unknown_fields

PRODUCT_FIELDS = {"code", "name", "unit_price"}

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _repo() -> ProductRepository:
    return ProductRepository(db.session)


@products_bp.get("")
@require_auth
def list_products():
    """
    List products ordered by code.

    Query params: page, page_size, keyword (matches code or name).
    """
    try:
        page, page_size, keyword = list_args()
        repo = _repo()
        if page is not None:
            return repo.get_paginated(page, page_size, keyword).to_dict()

        products = repo.search(keyword) if keyword else repo.get_all()
        return {"items": [p.to_dict() for p in products], "count": len(products)}
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to list products")
        return {"error": "Internal server error"}, 500


@products_bp.get("/search")
@require_auth
def search_products():
    """Unpaginated type-ahead search over code and name."""
    keyword = request.args.get("keyword", "")
    try:
        products = _repo().search(keyword)
    except StoreError:
        current_app.logger.exception("Failed to search products")
        return {"error": "Internal server error"}, 500
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<code>")
@require_auth
def get_product(code: str):
    try:
        product = _repo().get_by_code(code)
    except StoreError:
        current_app.logger.exception("Failed to load product %s", code)
        return {"error": "Internal server error"}, 500

    if not product:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def create_product_route():
    """Create a product under a caller-chosen code. Requires Administrator."""
    try:
        payload = json_payload()
        reject_unknown_fields(payload, PRODUCT_FIELDS)
        created = _repo().create(
            code=payload.get("code"),
            name=payload.get("name"),
            unit_price=payload.get("unit_price"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StoreError:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@products_bp.put("/<code>")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def update_product_route(code: str):
    """Update name and/or unit_price. The code cannot change. Requires Administrator."""
    try:
        updated = _repo().update(code, json_payload())
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to update product %s", code)
        return {"error": "Internal server error"}, 500

    if not updated:
        return {"error": "Product not found"}, 404
    return updated.to_dict(), 200


@products_bp.delete("/<code>")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def delete_product_route(code: str):
    """Delete a product. Requires Administrator."""
    try:
        deleted = _repo().delete(code)
    except StoreError:
        current_app.logger.exception("Failed to delete product %s", code)
        return {"error": "Internal server error"}, 500

    if not deleted:
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
