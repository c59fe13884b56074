# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/printdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables if missing and ensure the pricing row exists.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all accounts with role and active status.
# - python -m flask users create-admin --email admin@printdesk.local --password "Password123!" --first-name Shop --last-name Admin
#   Create an admin account (prompts if options are omitted).
#
# Pricing:
# - python -m flask pricing show
# - python -m flask pricing set --print-bw 1 --print-color 2 --photocopying 2 --scanning 5 --photo-development 15 --laminating 20
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.pricing import PRICE_FIELDS
from .services import pricing_service, session_service
from .services.auth_service import create_admin
from .validation import ValidationError, StateConflictError, DependencyFailure


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the PrintDesk database.

    Idempotent: creates missing tables and the pricing row with default
    prices. Existing data is left alone.
    """
    click.echo("START Initializing PrintDesk...")

    db.create_all()
    click.echo("PASS Tables ready")

    pricing = pricing_service.get_pricing()
    click.echo(f"PASS Pricing row ready (ID: {pricing.id})")

    admin_count = db.session.query(User).filter_by(role="admin").count()
    if not admin_count:
        click.echo("WARN  No admin account yet. Run 'python -m flask users create-admin'.")

    click.echo("DONE PrintDesk initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including archived orders!
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


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--phone', default='', help='Phone number')
@with_appcontext
def create_admin_cli(email, password, first_name, last_name, phone):
    """
    Create an admin account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_admin(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
        )
        click.echo(f"PASS Created admin: {user.full_name} ({user.email})")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except (ValidationError, StateConflictError) as e:
        click.echo(f"FAIL Failed to create admin: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all accounts."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<30} {'Email':<35} {'Role':<10} {'Active'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.full_name:<30} {user.email:<35} {user.role:<10} {active_str}")

    click.echo("="*100 + "\n")


@click.group('pricing')
def pricing_group():
    """Unit price table commands."""


@pricing_group.command('show')
@with_appcontext
def show_pricing():
    """Print the current unit prices."""
    pricing = pricing_service.get_pricing().to_dict()
    for field in PRICE_FIELDS:
        click.echo(f"{field:<20} {pricing[field]}")


@pricing_group.command('set')
@click.option('--print-bw', required=True)
@click.option('--print-color', required=True)
@click.option('--photocopying', required=True)
@click.option('--scanning', required=True)
@click.option('--photo-development', required=True)
@click.option('--laminating', required=True)
@with_appcontext
def set_pricing_cli(**values):
    """Replace all six unit prices."""
    try:
        pricing_service.set_pricing(values)
    except (ValidationError, StateConflictError, DependencyFailure) as e:
        raise click.ClickException(str(e))

    click.echo("PASS Pricing updated")
    pricing = pricing_service.get_pricing().to_dict()
    for field in PRICE_FIELDS:
        click.echo(f"{field:<20} {pricing[field]}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked session tokens older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} stale session tokens.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(pricing_group)
    app.cli.add_command(maintenance_group)
