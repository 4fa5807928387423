"""
CLI command tests (flask system / flask users).
"""

from orderapp.cli import DEFAULT_USERS, SAMPLE_CUSTOMERS, SAMPLE_PRODUCTS
from orderapp.extensions import db
from orderapp.models import Customer, Product, User


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init"])
    assert first.exit_code == 0, first.output

    second = runner.invoke(args=["system", "init"])
    assert second.exit_code == 0, second.output
    assert "Using existing user: admin" in second.output

    assert db.session.query(User).count() == len(DEFAULT_USERS)
    assert db.session.query(Customer).count() == len(SAMPLE_CUSTOMERS)
    assert db.session.query(Product).count() == len(SAMPLE_PRODUCTS)


def test_system_init_without_samples(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init", "--no-samples"])

    assert result.exit_code == 0, result.output
    assert db.session.query(Product).count() == 0
    assert {u.role for u in db.session.query(User)} == {"Administrator", "User"}


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=["users", "create", "--username", "alice", "--password", "Alice1234", "--role", "User"])
    assert created.exit_code == 0, created.output

    listed = runner.invoke(args=["users", "list"])
    assert "alice" in listed.output


def test_users_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=["users", "create", "--username", "bob", "--password", "weak", "--role", "User"])

    assert result.exit_code != 0
    assert db.session.query(User).filter_by(username="bob").first() is None
