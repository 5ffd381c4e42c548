# Overview: Flask CLI command groups for bootstrap, backup/restore, and user inspection.

# backend/swiftpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to swiftpos (PowerShell: $env:FLASK_APP="swiftpos").
# - Use: python -m flask <group> <command> [options]
#
# Store bootstrap and data:
# - python -m flask store init
#   Create tables and write the seed catalog, customer, users and settings (idempotent).
# - python -m flask store reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask store export backup.json
#   Write the backup envelope (all collections, backupDate, version) to a file.
# - python -m flask store import backup.json
#   Restore collections present in the file; absent ones are left alone.
# - python -m flask store summary
#   Print revenue, expenses, balance and stock investment.
# - python -m flask store backup
#   Run a manual backup now (requires googleDriveConnected).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their roles.
# - python -m flask users create --name "Front Desk" --username desk --password "secret" --role staff
#   Create a user (prompts if options are omitted).

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import auth_service, reporting_service
from .services.backup_service import get_scheduler
from .services.state_service import get_state, EXTENSION_KEY
from .validation import ConflictError, USER_ROLES


@click.group('store')
def store_group():
    """Store bootstrap, export/import, and backup commands."""


@store_group.command('init')
@with_appcontext
def init_store():
    """
    Initialize the store: create tables and persist the seed data.

    Creates (only where nothing is stored yet):
    - The 29-product starter catalog and customer C1
    - Users: admin, manager (password: "password")
    - Default store settings

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing SwiftPOS store...")
    db.create_all()
    state = get_state()
    with state.lock:
        click.echo(f"PASS Products: {len(state.products)}")
        click.echo(f"PASS Customers: {len(state.customers)}")
        click.echo(f"PASS Users: {', '.join(u['username'] for u in state.users)}")
        click.echo(f"PASS Store name: {state.settings.get('storeName')}")


@store_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive operation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    current_app.extensions[EXTENSION_KEY].loaded = False
    click.echo("PASS Database reset")


@store_group.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_data(path):
    """Write the backup envelope to PATH."""
    data = get_state().get_all_data()
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2)
    click.echo(f"PASS Exported {len(data['products'])} products, {len(data['transactions'])} transactions to {path}")


@store_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_data(path):
    """Restore collections from the backup envelope at PATH."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as e:
        click.echo(f"FAIL {path} is not valid JSON: {e}")
        raise SystemExit(1)

    if not get_state().restore_data(data):
        click.echo("FAIL Invalid backup file")
        raise SystemExit(1)
    click.echo("PASS Restore complete")


@store_group.command('summary')
@click.option('--start', default=None, help='First day (YYYY-MM-DD)')
@click.option('--end', default=None, help='Last day (YYYY-MM-DD)')
@with_appcontext
def show_summary(start, end):
    """Print store KPIs."""
    result = reporting_service.summary(get_state(), start, end)
    for key, value in result.items():
        click.echo(f"{key:<18} {value}")


@store_group.command('backup')
@with_appcontext
def run_backup():
    """Run a manual backup now."""
    scheduler = get_scheduler()
    if scheduler is None:
        click.echo("FAIL Backups are disabled (BACKUP_ENABLED=0)")
        raise SystemExit(1)
    get_state()  # loads settings before the flag check
    if not scheduler.trigger_manual_backup():
        click.echo("FAIL Cloud storage is not connected")
        raise SystemExit(1)
    click.echo(f"PASS Backup completed at {scheduler.status()['lastBackupTime']}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = auth_service.list_users(get_state())

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<16} {'Username':<20} {'Name':<20} {'Role'}")
    click.echo("="*70)
    for user in users:
        click.echo(f"{user['id']:<16} {user['username']:<20} {user['name']:<20} {user['role']}")


@users_group.command('create')
@click.option('--name', prompt=True)
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(USER_ROLES), prompt=True)
@with_appcontext
def create_user(name, username, password, role):
    """Create a user."""
    try:
        user = auth_service.add_user(get_state(), {
            "name": name,
            "username": username,
            "password": password,
            "role": role,
        })
    except ConflictError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user {user['username']} (ID: {user['id']}, Role: {user['role']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(users_group)
