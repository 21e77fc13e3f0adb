# Overview: Flask CLI command groups for bootstrap, access secrets, and maintenance.

# backend/counterpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--no-seed]
#   Create tables and insert the starter catalogue into an empty products table.
# - python -m flask system seed-products
#   Insert the starter catalogue only (no-op when products exist).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete all business data but keep access secrets and sessions.
#
# Access secrets:
# - python -m flask access set-pin --pin 4821
#   Set the operator PIN that unlocks billing (prompts if omitted).
# - python -m flask access set-admin --username owner --password "Password123!"
#   Set the admin login (prompts if omitted).
# - python -m flask access status
#   Show which secrets are configured.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired and revoked sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models.auth import ROLE_ADMIN, ROLE_OPERATOR
from .services import auth_service, maintenance_service, products_service, session_service
from .services.auth_service import PasswordValidationError, PinValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-seed', is_flag=True, help='Do not insert the starter catalogue')
@with_appcontext
def init_system(no_seed):
    """
    Initialize the store database. Idempotent.

    Creates any missing tables, then seeds the starter catalogue when the
    products table is empty. Secrets are set separately with `flask access`.
    """
    click.echo("START Initializing counter...")

    db.create_all()
    click.echo("PASS Tables ready")

    if no_seed:
        click.echo("SKIP Starter catalogue")
    else:
        inserted = products_service.seed_products()
        if inserted:
            click.echo(f"PASS Inserted {inserted} starter products")
        else:
            click.echo("PASS Products already present, catalogue not seeded")

    if not auth_service.has_credential(ROLE_OPERATOR):
        click.echo("WARN No operator PIN yet. Run 'python -m flask access set-pin'.")
    if not auth_service.has_credential(ROLE_ADMIN):
        click.echo("WARN No admin login yet. Run 'python -m flask access set-admin'.")

    click.echo("DONE")


@system_group.command('seed-products')
@with_appcontext
def seed_products_cli():
    """Insert the starter catalogue into an empty products table."""
    inserted = products_service.seed_products()
    click.echo(f"Inserted {inserted} products.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, secrets included!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear all business data while keeping access secrets.

    Removes: products, customers, sales, sale items, returns and stock purchases.
    """
    if not yes:
        click.confirm("WARN This will DELETE all business data. Are you sure?", abort=True)

    click.echo("WIPE  Clearing business data...")
    deleted = maintenance_service.wipe_business_data()
    for name, count in deleted.items():
        click.echo(f"  {name}: {count}")
    click.echo("PASS Wipe complete.")


@click.group('access')
def access_group():
    """Operator PIN and admin login management."""


@access_group.command('set-pin')
@click.option('--pin', prompt=True, hide_input=True, confirmation_prompt=True, help='4-8 digit PIN')
@with_appcontext
def set_pin_cli(pin):
    """Set (or replace) the operator PIN."""
    try:
        auth_service.set_operator_pin(pin)
    except PinValidationError as e:
        raise click.ClickException(str(e))
    click.echo("PASS Operator PIN updated")


@access_group.command('set-admin')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def set_admin_cli(username, password):
    """Set (or replace) the admin username and password."""
    try:
        auth_service.set_admin_credentials(username, password)
    except (PasswordValidationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Admin login updated for '{username.strip()}'")


@access_group.command('status')
@with_appcontext
def access_status_cli():
    """Show which secrets are configured."""
    for role in (ROLE_OPERATOR, ROLE_ADMIN):
        state = "set" if auth_service.has_credential(role) else "missing"
        click.echo(f"{role:<10} {state}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """
    Cleanup old counter sessions.

    Default retention: 30 days.
    """
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(access_group)
    app.cli.add_command(maintenance_group)
