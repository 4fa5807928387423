# Overview: Product repository; CRUD, keyword search and pagination keyed by product code.

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..models import Product
from ..validation import ConflictError, ModelValidationPolicy, enforce_rules_product, validate_payload
from orderapp.time_utils import utcnow
from .base import BaseRepository, NotFoundError, Page, contains, paginate

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"code", "name", "unit_price"}),
    required_on_create=frozenset({"code", "name"}),
    create_only_fields=frozenset({"code"}),
)


class ProductRepository(BaseRepository):
    """Products ordered by code; keyword matches code or name."""

    def _base_query(self, keyword: str | None = None):
        query = self.session.query(Product)
        if keyword:
            query = query.filter(or_(contains(Product.code, keyword), contains(Product.name, keyword)))
        return query.order_by(Product.code.asc())

    def get_all(self) -> list[Product]:
        with self._transaction("products.get_all"):
            return self._base_query().all()

    def get_paginated(self, page: int = 1, page_size: int = 20, keyword: str | None = None) -> Page[Product]:
        with self._transaction("products.get_paginated"):
            return paginate(self._base_query(keyword), page, page_size)

    def get_by_code(self, code: str) -> Product | None:
        with self._transaction("products.get_by_code", code):
            return self.session.get(Product, code)

    def require(self, code: str) -> Product:
        product = self.get_by_code(code)
        if product is None:
            raise NotFoundError(f"Product {code} not found")
        return product

    def search(self, keyword: str) -> list[Product]:
        with self._transaction("products.search"):
            return self._base_query(keyword).all()

    def create(self, code: str, name: str, unit_price: int = 0) -> Product:
        """
        Create a product under a caller-chosen code.

        Raises:
            ValidationError: blank code/name, non-integer or negative price
            ConflictError: code already in use
        """
        payload = {"code": code, "name": name}
        if unit_price is not None:
            payload["unit_price"] = unit_price
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        patch.setdefault("unit_price", 0)
        enforce_rules_product(patch)

        with self._transaction("products.create", patch["code"]):
            if self.session.get(Product, patch["code"]) is not None:
                raise ConflictError(f"Product code {patch['code']} already exists.")

            product = Product(**patch)
            self.session.add(product)
            try:
                self.session.commit()
            except IntegrityError as exc:
                # another writer took the code between the check and the insert
                self.session.rollback()
                raise ConflictError(f"Product code {patch['code']} already exists.") from exc
            self.session.refresh(product)
            return product

    def update(self, code: str, patch: dict) -> Product | None:
        """
        Partial update of name and/or unit_price. The code itself cannot change.
        Returns None when the product does not exist.
        """
        patch = validate_payload(model=Product, payload=patch, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)

        with self._transaction("products.update", code):
            product = self.session.get(Product, code)
            if product is None:
                return None
            if not patch:
                return product

            for key, value in patch.items():
                setattr(product, key, value)
            product.updated_at = utcnow()

            self.session.commit()
            self.session.refresh(product)
            return product

    def delete(self, code: str) -> bool:
        with self._transaction("products.delete", code):
            product = self.session.get(Product, code)
            if product is None:
                return False
            self.session.delete(product)
            self.session.commit()
            return True
