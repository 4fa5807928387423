# Overview: Customer repository; CRUD, keyword search and pagination over the customers table.

from __future__ import annotations

from sqlalchemy import or_

from ..models import Customer
from ..validation import ModelValidationPolicy, validate_payload
from orderapp.time_utils import utcnow
from .base import BaseRepository, NotFoundError, Page, contains, paginate

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "phone"}),
    required_on_create=frozenset({"name"}),
)


def _normalize(patch: dict) -> dict:
    # A blank phone number means "no phone number"
    if patch.get("phone") == "":
        patch["phone"] = None
    return patch


class CustomerRepository(BaseRepository):
    """Customers ordered by name; keyword matches name or phone."""

    def _base_query(self, keyword: str | None = None):
        query = self.session.query(Customer)
        if keyword:
            query = query.filter(or_(contains(Customer.name, keyword), contains(Customer.phone, keyword)))
        return query.order_by(Customer.name.asc(), Customer.id.asc())

    def get_all(self) -> list[Customer]:
        with self._transaction("customers.get_all"):
            return self._base_query().all()

    def get_paginated(self, page: int = 1, page_size: int = 20, keyword: str | None = None) -> Page[Customer]:
        with self._transaction("customers.get_paginated"):
            return paginate(self._base_query(keyword), page, page_size)

    def get_by_id(self, customer_id: int) -> Customer | None:
        with self._transaction("customers.get_by_id", customer_id):
            return self.session.get(Customer, customer_id)

    def require(self, customer_id: int) -> Customer:
        customer = self.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def search(self, keyword: str) -> list[Customer]:
        with self._transaction("customers.search"):
            return self._base_query(keyword).all()

    def create(self, name: str, phone: str | None = None) -> Customer:
        patch = _normalize(validate_payload(
            model=Customer,
            payload={"name": name, "phone": phone},
            policy=CUSTOMER_POLICY,
            partial=False,
        ))

        with self._transaction("customers.create"):
            customer = Customer(**patch)
            self.session.add(customer)
            self.session.commit()
            self.session.refresh(customer)
            return customer

    def update(self, customer_id: int, patch: dict) -> Customer | None:
        """
        Partial update. Keys absent from patch are left alone; phone=None
        clears the phone number. Returns None when the customer does not exist.
        """
        patch = _normalize(validate_payload(model=Customer, payload=patch, policy=CUSTOMER_POLICY, partial=True))

        with self._transaction("customers.update", customer_id):
            customer = self.session.get(Customer, customer_id)
            if customer is None:
                return None
            if not patch:
                return customer

            for key, value in patch.items():
                setattr(customer, key, value)
            customer.updated_at = utcnow()

            self.session.commit()
            self.session.refresh(customer)
            return customer

    def delete(self, customer_id: int) -> bool:
        with self._transaction("customers.delete", customer_id):
            customer = self.session.get(Customer, customer_id)
            if customer is None:
                return False
            self.session.delete(customer)
            self.session.commit()
            return True
