# Overview: Flask CLI command groups for bootstrap, inspection, archive generation and maintenance.

# backend/portal/cli.py
# Usage, from backend/ with FLASK_APP=wsgi.py:
#   python -m flask <group> <command> [options]
# JWT_SECRET must hold at least 32 characters or the app refuses to start.
#
# Portal setup:
# - python -m flask system init
#   Idempotent bootstrap: permissions, groups, roles, default grants and the first super-admin.
# - python -m flask system reset-db --yes
#   Wipes every table; refused when PORTAL_ENV is production.
#
# Accounts:
# - python -m flask users list
# - python -m flask users create --username clerk1 --email clerk1@example.gov --role user --ministry Finance
#
# Role grants:
# - python -m flask perms list [--role admin]
# - python -m flask perms check alice payroll_view
# - python -m flask perms grant user payroll_view
# - python -m flask perms revoke user payroll_view
#
# Payroll archive:
# - python -m flask archive generate
#   One scheduled-style run (start and end events are recorded).
# - python -m flask archive worker --interval-seconds 60
#   Loop forever, running generate every interval (ARCHIVE_INTERVAL_SECONDS by default).
#
# Blob storage:
# - python -m flask maintenance purge-blobs --max-age-hours 24
#   Delete stored file content no PDF or submission references.

import time

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import PortalError
from .extensions import db
from .models import Permission, Role, User
from .services import (
    access_service,
    archive_service,
    blob_service,
    permission_service,
    role_service,
    seed_service,
    user_service,
)


@click.group('system')
def system_group():
    """Portal setup commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the portal: permission catalogue, folder groups, default roles
    (s-admin, admin, user), default grants and the bootstrap super-admin.

    The super-admin comes from INITIAL_ADMIN_USERNAME / INITIAL_ADMIN_PASSWORD /
    INITIAL_ADMIN_EMAIL. When unset a temporary password is printed once.
    """
    click.echo("START Initializing portal...")
    result = seed_service.bootstrap()
    click.echo(f"PASS Permissions created: {result.permissions_created}")
    click.echo(f"PASS Groups created: {result.groups_created}")
    click.echo(f"PASS Roles created: {result.roles_created}")
    click.echo(f"PASS Role grants added: {result.grants_added}")

    if not result.admin_created:
        click.echo("PASS Active super-admin already present")
    elif result.temporary_password:
        click.echo("\n" + "=" * 60)
        click.echo("WARN  TEMPORARY super-admin credentials (set INITIAL_ADMIN_* instead!):")
        click.echo(f"   {result.admin_username} / {result.temporary_password}")
        click.echo("WARN  Change this password immediately. Never run production like this.")
        click.echo("=" * 60)
    else:
        click.echo(f"PASS Created super-admin '{result.admin_username}'")

    click.echo("DONE Portal initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate every table (development and test databases only)."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    if current_app.config.get("PORTAL_ENV") == "production":
        click.echo("FAIL reset-db is disabled in production")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """Account commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and active status."""
    for user in user_service.list_users():
        status = "active" if user.is_active else "inactive"
        role = user.role.name if user.role else "<missing role>"
        click.echo(f"{user.id:>4}  {user.username:<24} {role:<12} {status:<8} {user.ministry or ''}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--role', 'role_name', default='user', show_default=True)
@click.option('--ministry', default=None)
@with_appcontext
def create_user(username, email, password, first_name, last_name, role_name, ministry):
    """Create a user (prompts if options are omitted)."""
    role = role_service.get_role_by_name(role_name)
    if role is None:
        click.echo(f"FAIL Role '{role_name}' not found")
        raise SystemExit(1)
    try:
        user = user_service.create_user(None, {
            "username": username,
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "role_id": role.id,
            "ministry": ministry,
        })
    except PortalError as exc:
        click.echo(f"FAIL {exc.message}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} with role '{role_name}'")


@click.group('perms')
def perms_group():
    """Permission catalogue and role grant commands."""


@perms_group.command('list')
@click.option('--role', 'role_name', default=None, help='Only permissions held by this role')
@with_appcontext
def list_permissions(role_name):
    if role_name:
        role = db.session.query(Role).filter_by(name=role_name).first()
        if role is None:
            click.echo(f"FAIL Role '{role_name}' not found")
            raise SystemExit(1)
        keys = sorted(role.permission_keys)
        click.echo(f"{role.name}: {len(keys)} permission(s)")
        for key in keys:
            click.echo(f"  {key}")
        return

    for permission in db.session.query(Permission).order_by(Permission.category, Permission.key).all():
        click.echo(f"{permission.category or '-':<12} {permission.key:<28} {permission.name}")


@perms_group.command('check')
@click.argument('username')
@click.argument('permission_key')
@with_appcontext
def check_permission(username, permission_key):
    """Check whether a user has a permission."""
    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        click.echo(f"FAIL User '{username}' not found")
        raise SystemExit(1)
    try:
        allowed = access_service.has_permission(access_service.resolve_user(user), permission_key)
    except PortalError as exc:
        click.echo(f"FAIL {exc.message}")
        raise SystemExit(1)
    click.echo(f"{'ALLOW' if allowed else 'DENY'} {username} -> {permission_key}")


@perms_group.command('grant')
@click.argument('role_name')
@click.argument('permission_key')
@with_appcontext
def grant_permission(role_name, permission_key):
    try:
        added = permission_service.grant_permission_to_role(role_name, permission_key)
    except PortalError as exc:
        click.echo(f"FAIL {exc.message}")
        raise SystemExit(1)
    click.echo(f"PASS Granted {permission_key} to {role_name}" if added else f"WARN  {role_name} already has {permission_key}")


@perms_group.command('revoke')
@click.argument('role_name')
@click.argument('permission_key')
@with_appcontext
def revoke_permission(role_name, permission_key):
    try:
        removed = permission_service.revoke_permission_from_role(role_name, permission_key)
    except PortalError as exc:
        click.echo(f"FAIL {exc.message}")
        raise SystemExit(1)
    click.echo(f"PASS Revoked {permission_key} from {role_name}" if removed else f"WARN  {role_name} did not have {permission_key}")


@click.group('archive')
def archive_group():
    """Payroll archive folder generation."""


def _echo_result(result):
    if result.created:
        click.echo(f"PASS Created: {', '.join(result.created)}")
    click.echo(f"PASS Skipped existing: {result.skipped_count}")


@archive_group.command('generate')
@with_appcontext
def generate_archive():
    """Run archive generation once, recorded as a scheduled run."""
    result = archive_service.run_scheduled()
    _echo_result(result)


@archive_group.command('worker')
@click.option('--interval-seconds', type=int, default=None, help='Seconds between runs')
@click.option('--max-runs', type=int, default=None, help='Stop after this many runs')
@with_appcontext
def archive_worker(interval_seconds, max_runs):
    """
    Run archive generation at a fixed interval.

    Each run is independent; a failed run is logged and the loop continues.
    """
    interval = interval_seconds or current_app.config.get("ARCHIVE_INTERVAL_SECONDS")
    click.echo(f"START Archive worker, interval {interval}s")
    runs = 0
    while max_runs is None or runs < max_runs:
        try:
            _echo_result(archive_service.run_scheduled())
        except Exception:
            current_app.logger.exception("Scheduled archive generation failed")
        finally:
            db.session.remove()
        runs += 1
        if max_runs is not None and runs >= max_runs:
            break
        time.sleep(interval)
    click.echo("DONE Archive worker stopped")


@click.group('maintenance')
def maintenance_group():
    """Storage housekeeping."""


@maintenance_group.command('purge-blobs')
@click.option('--max-age-hours', type=int, default=24, show_default=True)
@with_appcontext
def purge_blobs(max_age_hours):
    """Delete stored file content that nothing references."""
    removed = blob_service.purge_orphaned_blobs(max_age_hours=max_age_hours)
    click.echo(f"PASS Removed {removed} orphaned blob(s)")


def register_commands(app):
    """Attach the portal command groups to app.cli."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(archive_group)
    app.cli.add_command(maintenance_group)
