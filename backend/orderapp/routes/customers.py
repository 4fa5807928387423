# Overview: Flask API routes for customer master data; parses input and returns JSON responses.

"""
Customer management routes.

SECURITY: All routes require authentication.
- Read operations: any authenticated user
- Write operations: Administrator role
"""
from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import ROLE_ADMINISTRATOR
from ..repositories import CustomerRepository, StoreError
from ..validation import ValidationError
from .common import json_payload, list_args, reject_unknown_fields

CUSTOMER_FIELDS = {"name", "phone"}

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _repo() -> CustomerRepository:
    return CustomerRepository(db.session)


@customers_bp.get("")
@require_auth
def list_customers():
    """
    List customers ordered by name.

    With ?page= the result is one page ({data, total_count, page, page_size,
    total_pages}); without it every match is returned.
    """
    try:
        page, page_size, keyword = list_args()
        repo = _repo()
        if page is not None:
            return repo.get_paginated(page, page_size, keyword).to_dict()

        customers = repo.search(keyword) if keyword else repo.get_all()
        return {"items": [c.to_dict() for c in customers], "count": len(customers)}
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to list customers")
        return {"error": "Internal server error"}, 500


@customers_bp.get("/search")
@require_auth
def search_customers():
    """Unpaginated type-ahead search over name and phone."""
    keyword = request.args.get("keyword", "")
    try:
        customers = _repo().search(keyword)
    except StoreError:
        current_app.logger.exception("Failed to search customers")
        return {"error": "Internal server error"}, 500
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer(customer_id: int):
    try:
        customer = _repo().get_by_id(customer_id)
    except StoreError:
        current_app.logger.exception("Failed to load customer %s", customer_id)
        return {"error": "Internal server error"}, 500

    if not customer:
        return {"error": "Customer not found"}, 404
    return customer.to_dict()


@customers_bp.post("")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def create_customer_route():
    """Create a customer. Requires Administrator."""
    try:
        payload = json_payload()
        reject_unknown_fields(payload, CUSTOMER_FIELDS)
        created = _repo().create(name=payload.get("name"), phone=payload.get("phone"))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to create customer")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def update_customer_route(customer_id: int):
    """
    Update a customer. Only the fields present in the body change;
    "phone": null clears the phone number. Requires Administrator.
    """
    try:
        updated = _repo().update(customer_id, json_payload())
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to update customer %s", customer_id)
        return {"error": "Internal server error"}, 500

    if not updated:
        return {"error": "Customer not found"}, 404
    return updated.to_dict(), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_role(ROLE_ADMINISTRATOR)
def delete_customer_route(customer_id: int):
    """Delete a customer. Requires Administrator."""
    try:
        deleted = _repo().delete(customer_id)
    except StoreError:
        current_app.logger.exception("Failed to delete customer %s", customer_id)
        return {"error": "Internal server error"}, 500

    if not deleted:
        return {"error": "Customer not found"}, 404
    return {"ok": True}, 200
