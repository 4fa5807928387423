"""
HTTP API tests.

Verifies:
- every data route requires a token (401)
- master-data mutations require Administrator (403 for User)
- order create / update / delete status mapping (400, 404, 409)
"""

from datetime import date

import pytest

from conftest import order_fields
from orderapp.extensions import db
from orderapp.models import Customer, Order


class TestAuthenticationRequired:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/customers"),
        ("post", "/api/customers"),
        ("get", "/api/products"),
        ("put", "/api/products/P1"),
        ("get", "/api/orders"),
        ("post", "/api/orders"),
        ("delete", "/api/orders/1?version=1"),
    ])
    def test_missing_token(self, client, db_session, method, path):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401

    def test_bad_token(self, client, db_session):
        response = client.get("/api/customers", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


@pytest.mark.customers
class TestCustomerRoutes:

    def test_user_can_read(self, client, user_headers, customer):
        response = client.get(f"/api/customers/{customer.id}", headers=user_headers)

        assert response.status_code == 200
        assert response.json["name"] == "Acme"

    @pytest.mark.parametrize("method,suffix", [("post", ""), ("put", "/{id}"), ("delete", "/{id}")])
    def test_user_cannot_write(self, client, user_headers, customer, method, suffix):
        path = "/api/customers" + suffix.format(id=customer.id)
        response = getattr(client, method)(path, json={"name": "Hijack"}, headers=user_headers)

        assert response.status_code == 403
        assert db.session.get(Customer, customer.id).name == "Acme"

    def test_admin_crud(self, client, admin_headers):
        created = client.post("/api/customers", json={"name": "Initech", "phone": "03-1111-2222"}, headers=admin_headers)
        assert created.status_code == 201
        customer_id = created.json["id"]

        updated = client.put(f"/api/customers/{customer_id}", json={"phone": None}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json["phone"] is None
        assert updated.json["name"] == "Initech"

        assert client.delete(f"/api/customers/{customer_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/customers/{customer_id}", headers=admin_headers).status_code == 404

    def test_blank_name(self, client, admin_headers):
        response = client.post("/api/customers", json={"name": ""}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_field(self, client, admin_headers):
        response = client.post("/api/customers", json={"name": "X", "email": "x@example.com"}, headers=admin_headers)
        assert response.status_code == 400

    def test_paginated_listing(self, client, admin_headers, customer_repo):
        for i in range(5):
            customer_repo.create(name=f"Customer {i}")

        response = client.get("/api/customers?page=2&page_size=2", headers=admin_headers)

        assert response.status_code == 200
        assert response.json["total_count"] == 5
        assert response.json["total_pages"] == 3
        assert [c["name"] for c in response.json["data"]] == ["Customer 2", "Customer 3"]

    def test_page_size_is_clamped(self, client, app, admin_headers, customer):
        response = client.get("/api/customers?page=1&page_size=100000", headers=admin_headers)
        assert response.json["page_size"] == app.config["MAX_PAGE_SIZE"]

    def test_page_zero(self, client, admin_headers):
        assert client.get("/api/customers?page=0", headers=admin_headers).status_code == 400

    @pytest.mark.parametrize("query", ["page=abc", "page=1&page_size=abc", "page_size=1.5"])
    def test_non_integer_paging_args(self, client, admin_headers, query):
        assert client.get(f"/api/customers?{query}", headers=admin_headers).status_code == 400

    def test_search(self, client, admin_headers, customer):
        response = client.get("/api/customers/search?keyword=0000", headers=admin_headers)

        assert response.status_code == 200
        assert response.json["count"] == 1


@pytest.mark.products
class TestProductRoutes:

    def test_user_cannot_create(self, client, user_headers):
        response = client.post("/api/products", json={"code": "P9", "name": "Nine"}, headers=user_headers)
        assert response.status_code == 403

    def test_admin_create_and_duplicate(self, client, admin_headers):
        body = {"code": "P9", "name": "Nine", "unit_price": 900}

        assert client.post("/api/products", json=body, headers=admin_headers).status_code == 201
        assert client.post("/api/products", json=body, headers=admin_headers).status_code == 409

    def test_code_cannot_change(self, client, admin_headers, widget):
        response = client.put("/api/products/P1", json={"code": "P2"}, headers=admin_headers)
        assert response.status_code == 400

    def test_get_missing(self, client, user_headers):
        assert client.get("/api/products/NOPE", headers=user_headers).status_code == 404


@pytest.mark.orders
class TestOrderRoutes:

    def test_create_snapshots_customer_and_product(self, client, user_headers, plain_user, customer, widget):
        response = client.post("/api/orders", json={
            "customer_id": customer.id,
            "order_date": "2024-04-01",
            "total_amount": 300,
            "details": [{"product_code": "P1", "quantity": 3}],
        }, headers=user_headers)

        assert response.status_code == 201
        body = response.json
        assert body["version"] == 1
        assert body["customer_name"] == "Acme"
        assert body["created_by"] == plain_user.id
        assert body["details"][0]["product_name"] == "Widget"
        assert body["details"][0]["unit_price"] == 100
        assert body["details"][0]["amount"] == 300

    def test_create_for_unknown_customer(self, client, user_headers):
        response = client.post("/api/orders", json={"customer_id": 999999, "order_date": "2024-04-01"}, headers=user_headers)
        assert response.status_code == 404

    def test_create_with_unknown_product(self, client, user_headers, customer):
        response = client.post("/api/orders", json={
            "customer_id": customer.id,
            "order_date": "2024-04-01",
            "details": [{"product_code": "NOPE", "quantity": 1}],
        }, headers=user_headers)

        assert response.status_code == 404
        assert db.session.query(Order).count() == 0

    def test_create_with_bad_detail(self, client, user_headers, customer, widget):
        response = client.post("/api/orders", json={
            "customer_id": customer.id,
            "order_date": "2024-04-01",
            "details": [{"product_code": "P1", "quantity": 0}],
        }, headers=user_headers)
        assert response.status_code == 400

    def test_update_conflict_and_delete_flow(self, client, user_headers, customer, widget):
        created = client.post("/api/orders", json={
            "customer_id": customer.id,
            "order_date": "2024-04-01",
            "details": [{"product_code": "P1", "quantity": 1}],
        }, headers=user_headers).json
        order_id = created["id"]

        updated = client.put(f"/api/orders/{order_id}", json={
            "version": 1,
            "details": [
                {"product_code": "P1", "quantity": 2},
                {"product_code": "X1", "product_name": "Custom", "quantity": 1, "unit_price": 5},
            ],
        }, headers=user_headers)
        assert updated.status_code == 200
        assert updated.json["version"] == 2
        assert len(updated.json["details"]) == 2

        stale = client.put(f"/api/orders/{order_id}", json={"version": 1, "total_amount": 1}, headers=user_headers)
        assert stale.status_code == 409
        assert stale.json["conflict"] is True

        assert client.delete(f"/api/orders/{order_id}?version=1", headers=user_headers).status_code == 409
        assert client.delete(f"/api/orders/{order_id}", json={"version": 2}, headers=user_headers).status_code == 200
        assert client.get(f"/api/orders/{order_id}", headers=user_headers).status_code == 404
        assert client.delete(f"/api/orders/{order_id}?version=2", headers=user_headers).status_code == 404

    def test_delete_requires_version(self, client, user_headers, order_repo, customer):
        order = order_repo.create(order_fields(customer))

        assert client.delete(f"/api/orders/{order.id}", headers=user_headers).status_code == 400
        assert client.delete(f"/api/orders/{order.id}?version=abc", headers=user_headers).status_code == 400

    def test_update_customer_snapshots_new_name(self, client, user_headers, order_repo, customer_repo, customer):
        order = order_repo.create(order_fields(customer))
        globex = customer_repo.create(name="Globex")

        response = client.put(f"/api/orders/{order.id}", json={"customer_id": globex.id}, headers=user_headers)

        assert response.status_code == 200
        assert response.json["customer_id"] == globex.id
        assert response.json["customer_name"] == "Globex"

    def test_update_to_unknown_customer(self, client, user_headers, order_repo, customer):
        order = order_repo.create(order_fields(customer))

        response = client.put(f"/api/orders/{order.id}", json={"customer_id": 999999}, headers=user_headers)

        assert response.status_code == 404
        assert order_repo.get_by_id(order.id).customer_name == "Acme"

    def test_update_missing_order(self, client, user_headers):
        assert client.put("/api/orders/999999", json={"total_amount": 1}, headers=user_headers).status_code == 404

    def test_list_with_date_filter_is_paginated(self, client, user_headers, order_repo, customer):
        for day in (1, 10, 20):
            order_repo.create(order_fields(customer, order_date=date(2024, 4, day)))

        response = client.get("/api/orders?date_from=2024-04-05", headers=user_headers)

        assert response.status_code == 200
        assert response.json["page"] == 1
        assert response.json["total_count"] == 2
        assert [o["order_date"] for o in response.json["data"]] == ["2024-04-20", "2024-04-10"]

    def test_list_without_page(self, client, user_headers, order_repo, customer):
        order_repo.create(order_fields(customer))

        response = client.get("/api/orders?keyword=Acme", headers=user_headers)
        assert response.json["count"] == 1


class TestHealth:

    def test_health(self, client, db_session):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json["checks"]["database"]["status"] == "healthy"
