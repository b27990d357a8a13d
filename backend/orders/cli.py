# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/orders/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "orders:create_app" (PowerShell: $env:FLASK_APP="orders:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their order counts.
# - python -m flask users create --email a@b.com --password "secret1" --full-name "Ada"
#   Register a user (prompts if options are omitted).
#
# Audit inspection:
# - python -m flask audit tail --limit 20 --order-id <id>
#   Newest audit events, optionally for one order.
#
# Maintenance:
# - python -m flask maintenance cleanup-tokens
#   Delete expired and revoked access tokens.

import json

import click
from flask.cli import with_appcontext
from sqlalchemy import func

from .errors import AuditAppendError, DomainError
from .extensions import db
from .models import Order, User
from .repositories import SQLAlchemyUserRepository
from .services import session_service
from .services.audit_service import AuditService
from .services.auth_service import AuthService
from .time_utils import to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left alone)."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their order counts."""
    rows = (
        db.session.query(User, func.count(Order.id))
        .outerjoin(Order, Order.user_id == User.id)
        .group_by(User.id)
        .order_by(User.created_at)
        .all()
    )

    if not rows:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Email':<30} {'Full name':<22} {'Orders'}")
    click.echo("="*100)

    for user, order_count in rows:
        click.echo(f"{user.id:<38} {user.email:<30} {(user.full_name or '-'):<22} {order_count}")

    click.echo("="*100 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, password, full_name):
    """Register a user the same way POST /api/auth/register does."""
    service = AuthService(SQLAlchemyUserRepository(db.session), AuditService(db.session))
    try:
        service.register(email, password, full_name)
    except AuditAppendError as e:
        click.echo(f"WARN User created but audit failed: {e.message}")
        return
    except DomainError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user {email.strip().lower()}")


@click.group('audit')
def audit_group():
    """Audit trail inspection."""


@audit_group.command('tail')
@click.option('--limit', default=20, show_default=True, type=int, help='Max events to show')
@click.option('--order-id', default=None, help='Only events for this order')
@with_appcontext
def audit_tail(limit, order_id):
    """Show the newest audit events."""
    events = AuditService(db.session).list_events(limit=limit, order_id=order_id)

    if not events:
        click.echo("No audit events found.")
        return

    for event in events:
        details = json.loads(event.details_json) if event.details_json else {}
        click.echo(
            f"{to_utc_z(event.created_at)}  {event.action:<16} "
            f"user={event.user_id or '-'} order={event.order_id or '-'} {json.dumps(details, sort_keys=True)}"
        )


@click.group('maintenance')
def maintenance_group():
    """Periodic maintenance commands."""


@maintenance_group.command('cleanup-tokens')
@with_appcontext
def cleanup_tokens():
    """Delete expired and revoked access tokens."""
    deleted = session_service.cleanup_expired_tokens()
    click.echo(f"PASS Deleted {deleted} token(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(audit_group)
    app.cli.add_command(maintenance_group)
