# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order entry routes.

SECURITY: All routes require authentication; any role may create, edit and
delete orders.

CONCURRENCY: PUT accepts the "version" the client last read. A stale version
returns 409 so the client can reload and retry; DELETE requires the version.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..extensions import db
from ..repositories import (
    ConcurrencyConflictError,
    CustomerRepository,
    NotFoundError,
    OrderRepository,
    ProductRepository,
    StoreError,
)
from ..validation import ValidationError, coerce_int
from .common import json_payload, list_args, reject_unknown_fields

ORDER_CREATE_FIELDS = {"customer_id", "customer_name", "order_date", "total_amount", "details"}
ORDER_UPDATE_FIELDS = ORDER_CREATE_FIELDS | {"version"}

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _repo() -> OrderRepository:
    return OrderRepository(db.session)


def _snapshot_details(details):
    """
    Fill product_name / unit_price from the product master when a line omits
    them. Values the client sent are kept as the snapshot.
    """
    if not isinstance(details, list):
        return details

    products = ProductRepository(db.session)
    filled = []
    for line in details:
        if isinstance(line, dict) and line.get("product_code") and (
            line.get("product_name") is None or line.get("unit_price") is None
        ):
            product = products.require(line["product_code"])
            line = dict(line)
            if line.get("product_name") is None:
                line["product_name"] = product.name
            if line.get("unit_price") is None:
                line["unit_price"] = product.unit_price
        filled.append(line)
    return filled


@orders_bp.get("")
@require_auth
def list_orders():
    """
    List orders, most recent first.

    Query params: page, page_size, keyword (customer name contains),
    date_from / date_to (YYYY-MM-DD, inclusive). Date filters imply page=1
    when no page is given.
    """
    try:
        page, page_size, keyword = list_args()
        date_from = request.args.get("date_from") or None
        date_to = request.args.get("date_to") or None
        repo = _repo()

        if page is None and (date_from or date_to):
            page = 1
        if page is not None:
            return repo.get_paginated(page, page_size, keyword, date_from, date_to).to_dict()

        orders = repo.search(keyword) if keyword else repo.get_all()
        return {"items": [o.to_dict() for o in orders], "count": len(orders)}
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to list orders")
        return {"error": "Internal server error"}, 500


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order(order_id: int):
    try:
        order = _repo().get_by_id(order_id)
    except StoreError:
        current_app.logger.exception("Failed to load order %s", order_id)
        return {"error": "Internal server error"}, 500

    if not order:
        return {"error": "Order not found"}, 404
    return order.to_dict(include_details=True)


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Create an order with its details in one transaction.

    customer_name defaults to the customer's current name; each detail's
    product_name / unit_price default to the product's current values.
    created_by is the authenticated user.
    """
    try:
        payload = json_payload()
        reject_unknown_fields(payload, ORDER_CREATE_FIELDS)

        fields = {k: v for k, v in payload.items() if k != "details"}
        if fields.get("customer_name") is None and fields.get("customer_id") is not None:
            customer = CustomerRepository(db.session).require(coerce_int("customer_id", fields["customer_id"]))
            fields["customer_name"] = customer.name
        fields["created_by"] = g.current_user.id

        details = _snapshot_details(payload.get("details") or [])
        order = _repo().create(fields, details)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except StoreError:
        current_app.logger.exception("Failed to create order")
        return {"error": "Internal server error"}, 500

    return order.to_dict(include_details=True), 201


@orders_bp.put("/<int:order_id>")
@require_auth
def update_order_route(order_id: int):
    """
    Update an order.

    Body fields are all optional. "version" enables the stale-write check;
    "details", when present, replaces every existing line. Changing customer_id
    without customer_name snapshots the new customer's current name.
    """
    try:
        payload = json_payload()
        reject_unknown_fields(payload, ORDER_UPDATE_FIELDS)

        patch = {k: v for k, v in payload.items() if k != "details"}
        if patch.get("customer_name") is None and patch.get("customer_id") is not None:
            customer = CustomerRepository(db.session).require(coerce_int("customer_id", patch["customer_id"]))
            patch["customer_name"] = customer.name
        details = _snapshot_details(payload["details"]) if payload.get("details") is not None else None

        order = _repo().update(order_id, patch, details)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConcurrencyConflictError as e:
        return {"error": str(e), "conflict": True}, 409
    except StoreError:
        current_app.logger.exception("Failed to update order %s", order_id)
        return {"error": "Internal server error"}, 500

    if not order:
        return {"error": "Order not found"}, 404
    return order.to_dict(include_details=True), 200


@orders_bp.delete("/<int:order_id>")
@require_auth
def delete_order_route(order_id: int):
    """
    Delete an order and its details.

    The version must be supplied (?version= or JSON body). The repository
    answers only yes/no; a follow-up read tells "gone" (404) from
    "changed since you read it" (409).
    """
    repo = _repo()
    try:
        version = request.args.get("version")
        if version is None and request.is_json:
            version = json_payload().get("version")
        if version is None:
            return {"error": "version required"}, 400

        deleted = repo.delete(order_id, version)
        if deleted:
            return {"ok": True}, 200
        still_there = repo.get_by_id(order_id) is not None
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StoreError:
        current_app.logger.exception("Failed to delete order %s", order_id)
        return {"error": "Internal server error"}, 500

    if still_there:
        return {"error": "Order was updated by another user. Reload and try again.", "conflict": True}, 409
    return {"error": "Order not found"}, 404
