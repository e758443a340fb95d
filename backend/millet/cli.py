# Overview: Flask CLI command groups for bootstrap and user inspection.

# backend/millet/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@millet.local --admin-password "Password123"]
#   Idempotent bootstrap: creates tables and the admin login.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all logins with role and linked warehouse/distributor.
# - python -m flask users create-admin --email admin2@millet.local --password "Password123"
#   Create another admin login.
#
# Warehouse and distributor logins are created through the API together with
# their owner (POST /api/warehouse, POST /api/add-distributor).

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import ServiceError
from .models import User
from .models.auth import ROLE_ADMIN
from .services.auth_service import create_admin, normalize_username

DEFAULT_ADMIN_EMAIL = "admin@millet.local"
DEFAULT_ADMIN_PASSWORD = "Password123"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=DEFAULT_ADMIN_EMAIL, show_default=True, help='Admin login email')
@click.option('--admin-password', default=DEFAULT_ADMIN_PASSWORD, help='Admin login password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Create all tables and the admin login.

    Safe to re-run: existing tables and an existing admin are left alone.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing Millet inventory...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(username=normalize_username(admin_email)).first()
    if existing:
        click.echo(f"WARN  User '{existing.username}' already exists, skipping...")
    else:
        try:
            user = create_admin(admin_email, admin_password)
            click.echo(f"PASS Created admin: {user.username}")
        except ServiceError as e:
            db.session.rollback()
            raise click.ClickException(e.message)

    click.echo("DONE Millet inventory initialized.")


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
    """Login inspection and bootstrap."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(email, password):
    """Create an admin login."""
    try:
        user = create_admin(email, password)
    except ServiceError as e:
        db.session.rollback()
        raise click.ClickException(e.message)
    click.echo(f"PASS Created admin: {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all logins."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<35} {'Role':<12} {'Linked to':<25} {'Active'}")
    click.echo("="*90)

    for user in users:
        if user.role == ROLE_ADMIN:
            linked = "-"
        elif user.warehouse is not None:
            linked = f"warehouse {user.warehouse.name}"
        elif user.distributor is not None:
            linked = f"distributor {user.distributor.name}"
        else:
            linked = "?"
        active_str = "Yes" if user.is_active else "No"

        click.echo(f"{user.id:<5} {user.username:<35} {user.role:<12} {linked:<25} {active_str}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
