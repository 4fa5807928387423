# Overview: Flask CLI command groups for bootstrap and user maintenance.

# backend/orderapp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to orderapp (PowerShell: $env:FLASK_APP="orderapp").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default users and sample master data.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their role.
# - python -m flask users create --username alice --password "secret123" --role User
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLES, ROLE_ADMINISTRATOR, ROLE_USER
from .repositories import CustomerRepository, ProductRepository
from .services.auth_service import create_user, PasswordValidationError

DEFAULT_USERS = [
    ("admin", "admin123", ROLE_ADMINISTRATOR),
    ("user", "user1234", ROLE_USER),
]

SAMPLE_CUSTOMERS = [
    ("Sample Trading Co.", "03-1234-5678"),
    ("Test Commerce Ltd.", "06-9876-5432"),
    ("Demo Corporation", "052-1111-2222"),
]

SAMPLE_PRODUCTS = [
    ("MA-08", "Big Zam", 8000000),
    ("MS-05B", "Zaku I", 700000),
    ("MS-06", "Zaku II", 820000),
    ("MS-07", "Gouf", 950000),
    ("MS-09", "Dom", 1200000),
    ("MS-14", "Gelgoog", 1800000),
    ("MSM-04", "Acguy", 980000),
    ("RGM-79", "GM", 1650000),
    ("RX-75-4", "Guntank", 500000),
    ("RX-77-2", "Guncannon", 1800000),
    ("RX-78-2", "Gundam", 3000000),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-samples', is_flag=True, help='Skip sample customers and products')
@with_appcontext
def init_system(no_samples):
    """
    Initialize the database: schema, default users, sample master data.

    Creates:
    - All tables (no-op for tables that already exist)
    - Users: admin (Administrator) / admin123, user (User) / user1234
    - Sample customers and products, only when those tables are empty

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing order database...")

    db.create_all()
    click.echo("PASS Schema ready")

    for username, password, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"PASS Using existing user: {username}")
            continue
        create_user(username, password, role)
        click.echo(f"PASS Created user: {username} ({role})")

    if no_samples:
        click.echo("PASS Initialization complete (samples skipped)")
        return

    customers = CustomerRepository(db.session)
    if not customers.get_all():
        for name, phone in SAMPLE_CUSTOMERS:
            customers.create(name=name, phone=phone)
        click.echo(f"PASS Created {len(SAMPLE_CUSTOMERS)} sample customers")

    products = ProductRepository(db.session)
    if not products.get_all():
        for code, name, unit_price in SAMPLE_PRODUCTS:
            products.create(code=code, name=name, unit_price=unit_price)
        click.echo(f"PASS Created {len(SAMPLE_PRODUCTS)} sample products")

    click.echo("PASS Initialization complete")
    click.echo("WARN Default passwords are admin123 / user1234. Change them before going live.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 60)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<15} {'Last login'}")
    click.echo("=" * 60)

    for user in users:
        last_login = user.last_login_at.isoformat(sep=" ", timespec="seconds") if user.last_login_at else "never"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<15} {last_login}")

    click.echo("=" * 60 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Unique username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default=ROLE_USER, show_default=True, help='Role')
@with_appcontext
def create_user_command(username, password, role):
    """Create a user."""
    try:
        user = create_user(username, password, role)
    except (ValueError, PasswordValidationError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}, role: {user.role})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
