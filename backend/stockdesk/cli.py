# Overview: Flask CLI command groups for bootstrap and user management.

# backend/stockdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use "flask db upgrade" for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with their roles.
# - python -m flask users create --name "Admin" --email admin@stockdesk.local --password "secret1" --role ADMIN
#   Create a user (prompts if options are omitted).
# - python -m flask users set-role admin@stockdesk.local ADMIN
#   Change a user's role.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLES, ROLE_USER
from .services.auth_service import create_user, normalize_email
from .validation import ApiError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA! Uploaded files under STORAGE_ROOT are left alone.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask users create' to add an admin.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default=ROLE_USER, show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    Password must be at least 6 characters. The username is derived from
    the email address.
    """
    try:
        user = create_user(name, email, password, role=role)
    except ApiError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Role':<8} {'Name'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.username or '-':<20} {user.email:<35} {user.role:<8} {user.name}")

    click.echo("="*90 + "\n")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(ROLES))
@with_appcontext
def set_role(email, role):
    """Change the role of the user with EMAIL."""
    try:
        email = normalize_email(email)
    except ApiError as e:
        raise click.ClickException(str(e))

    user = db.session.query(User).filter_by(email=email).first()
    if user is None:
        raise click.ClickException(f"User {email} not found")

    user.role = role
    db.session.commit()
    click.echo(f"PASS {user.email} is now {role}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
