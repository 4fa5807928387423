# Overview: Order repository; the order aggregate (header + details) with optimistic concurrency.

"""
Order aggregate persistence.

ATOMICITY: an order row and its detail rows are always written in one
transaction. create() inserts header and lines with a single commit;
update() applies header changes and (optionally) swaps the whole detail set
in a single commit. Any failure rolls the whole unit back.

CONCURRENCY: Order.version is SQLAlchemy's version_id_col. The check is a
compare-and-swap, not a lock:
- update() first compares the caller's version to the stored one and raises
  ConcurrencyConflictError on mismatch without touching the row;
- the UPDATE itself is guarded by "WHERE version = :seen", so a writer that
  commits between our read and our flush makes our UPDATE hit zero rows
  (StaleDataError), which is reported as the same conflict.

DELETE: delete(id, version) returns False both for "no such order" and for
"version mismatch". Callers that need to tell them apart re-read first.
"""
from __future__ import annotations

from sqlalchemy.orm.exc import StaleDataError

from ..models import Order, OrderDetail
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_date,
    coerce_int,
    enforce_rules_order,
    enforce_rules_order_detail,
    validate_payload,
)
from .base import BaseRepository, ConcurrencyConflictError, Page, contains, paginate

ORDER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"customer_id", "customer_name", "order_date", "total_amount", "created_by"}),
    required_on_create=frozenset({"customer_id", "customer_name", "order_date"}),
    create_only_fields=frozenset({"created_by"}),
)

ORDER_DETAIL_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_code", "product_name", "quantity", "unit_price", "amount"}),
    required_on_create=frozenset({"product_code", "product_name", "quantity", "unit_price"}),
)


def validate_details(details) -> list[dict]:
    """Validate a full detail set; amount is derived when omitted."""
    if not isinstance(details, (list, tuple)):
        raise ValidationError("details must be a list")

    lines = []
    for i, raw in enumerate(details):
        if not isinstance(raw, dict):
            raise ValidationError(f"details[{i}] must be an object")
        payload = {k: v for k, v in raw.items() if not (k == "amount" and v is None)}
        try:
            line = validate_payload(model=OrderDetail, payload=payload, policy=ORDER_DETAIL_POLICY, partial=False)
            enforce_rules_order_detail(line)
        except ValidationError as e:
            raise ValidationError(f"details[{i}]: {e}") from e
        lines.append(line)
    return lines


def _optional_date(key: str, value):
    if value is None or value == "":
        return None
    return coerce_date(key, value)


class OrderRepository(BaseRepository):
    """Orders, most recent first (order_date desc, then id desc)."""

    def _base_query(self, keyword: str | None = None, date_from=None, date_to=None):
        query = self.session.query(Order)
        if keyword:
            query = query.filter(contains(Order.customer_name, keyword))
        if date_from is not None:
            query = query.filter(Order.order_date >= date_from)
        if date_to is not None:
            query = query.filter(Order.order_date <= date_to)
        return query.order_by(Order.order_date.desc(), Order.id.desc())

    def get_all(self) -> list[Order]:
        with self._transaction("orders.get_all"):
            return self._base_query().all()

    def get_paginated(
        self,
        page: int = 1,
        page_size: int = 20,
        keyword: str | None = None,
        date_from=None,
        date_to=None,
    ) -> Page[Order]:
        """
        One page of orders. All filters are optional and combine with AND:
        customer_name contains keyword, order_date >= date_from,
        order_date <= date_to (dates as date objects or YYYY-MM-DD).
        """
        date_from = _optional_date("date_from", date_from)
        date_to = _optional_date("date_to", date_to)

        with self._transaction("orders.get_paginated"):
            return paginate(self._base_query(keyword, date_from, date_to), page, page_size)

    def search(self, keyword: str) -> list[Order]:
        with self._transaction("orders.search"):
            return self._base_query(keyword).all()

    def get_by_id(self, order_id: int) -> Order | None:
        """Order with its details (insertion order), freshly loaded from the store."""
        with self._transaction("orders.get_by_id", order_id):
            return self.session.get(Order, order_id, populate_existing=True)

    def get_details(self, order_id: int) -> list[OrderDetail]:
        with self._transaction("orders.get_details", order_id):
            return (
                self.session.query(OrderDetail)
                .filter(OrderDetail.order_id == order_id)
                .order_by(OrderDetail.id.asc())
                .all()
            )

    def create(self, fields: dict, details=()) -> Order:
        """
        Insert an order and all of its details as one unit.

        fields: customer_id, customer_name, order_date, total_amount, created_by.
        total_amount is stored as given (default 0); it is not recomputed.

        Raises:
            ValidationError: invalid header or detail
            StoreError: store failure (nothing is persisted)
        """
        patch = validate_payload(model=Order, payload=fields, policy=ORDER_POLICY, partial=False)
        if patch.get("total_amount") is None:
            patch["total_amount"] = 0
        enforce_rules_order(patch)
        lines = validate_details(list(details or []))

        with self._transaction("orders.create"):
            order = Order(**patch)
            order.details = [OrderDetail(**line) for line in lines]
            self.session.add(order)
            self.session.commit()
            order_id = order.id

        return self.get_by_id(order_id)

    def update(self, order_id: int, patch: dict, details=None) -> Order | None:
        """
        Partial update with optimistic concurrency control.

        patch may carry "version": when given it must equal the stored version.
        details, when not None, replaces the whole detail set.

        Returns:
            The refreshed order (version incremented by exactly one), or None
            when the order does not exist.

        Raises:
            ConcurrencyConflictError: version mismatch, row left unchanged
            ValidationError: invalid field or detail
        """
        patch = dict(patch or {})
        expected_version = patch.pop("version", None)
        if expected_version is not None:
            expected_version = coerce_int("version", expected_version)

        patch = validate_payload(model=Order, payload=patch, policy=ORDER_POLICY, partial=True)
        enforce_rules_order(patch)
        lines = validate_details(details) if details is not None else None

        with self._transaction("orders.update", order_id):
            order = self.session.get(Order, order_id, populate_existing=True)
            if order is None:
                return None

            if expected_version is not None and expected_version != order.version:
                raise ConcurrencyConflictError(order_id, expected_version, order.version)

            for key, value in patch.items():
                setattr(order, key, value)
            if lines is not None:
                # delete-orphan cascade removes the old set in the same flush
                order.details = [OrderDetail(**line) for line in lines]

            # Always dirties the header row, so the version-guarded UPDATE runs
            # (and bumps version) even when only details changed.
            order.updated_at = utcnow()

            try:
                self.session.commit()
            except StaleDataError as exc:
                raise ConcurrencyConflictError(order_id, expected_version) from exc

        return self.get_by_id(order_id)

    def delete(self, order_id: int, version) -> bool:
        """
        Delete the order and its details if the stored version matches.
        False when the order is missing or the version differs.
        """
        version = coerce_int("version", version)

        with self._transaction("orders.delete", order_id):
            order = self.session.get(Order, order_id, populate_existing=True)
            if order is None or order.version != version:
                return False

            self.session.delete(order)
            try:
                self.session.commit()
            except StaleDataError:
                self.session.rollback()
                return False
            return True
