# Overview: Flask CLI command groups for bootstrap, accounts, permissions and catalog seeding.

# backend/dealernet/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init --email admin@dealernet.local --password "Password123!"
#   Create tables (if missing) and the first admin account. Idempotent.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts (every non-admin account records who created it):
# - python -m flask users create --name "North Stalkist" --email s@x.in --password "Password123!" --role stalkist --created-by admin@dealernet.local
# - python -m flask users create --name "Dealer A" --email a@x.in --password "Password123!" --role dealer --created-by s@x.in
# - python -m flask users create --name "Ravi" --email r@x.in --password "Password123!" --role salesman --created-by a@x.in
# - python -m flask users list [--role dealer]
# - python -m flask users deactivate a@x.in
#   Deactivate an account and revoke its sessions.
#
# Permission inspection:
# - python -m flask perms list [--role dealer] [--category STOCK]
#
# Catalog seeding:
# - python -m flask products create --title "Tea 50g" --packet-price-cents 500 --packets-per-strip 10 --stock 100

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .errors import DomainError
from .permissions import (
    ALL_ROLES,
    PERMISSION_DEFINITIONS,
    ROLE_ALIASES,
    Role,
    get_role_permissions,
    normalize_role,
)
from .services.auth_service import create_user
from .services.session_service import revoke_all_user_sessions
from .services import products_service
from .validation import enforce_rules_product


ROLE_CHOICES = sorted(set(ALL_ROLES) | set(ROLE_ALIASES))


def _user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == (email or "").strip().lower()).first()


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--name', default='Administrator', show_default=True, help='Admin display name')
@click.option('--email', default='admin@dealernet.local', show_default=True, help='Admin email')
@click.option('--password', default='Password123!', show_default=True, help='Admin password')
@with_appcontext
def init_system(name, email, password):
    """
    Create all tables and the first admin account.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing dealernet...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = _user_by_email(email)
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email} (ID: {existing.id})")
        return

    try:
        admin = create_user(name, email, password, Role.ADMIN)
    except DomainError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")


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

    click.echo("PASS Database reset. Run 'python -m flask system init' to create the admin.")


@click.group('users')
def users_group():
    """Account management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLE_CHOICES), prompt=True, help='Role')
@click.option('--created-by', 'created_by', help='Email of the creating account (required except for admins)')
@with_appcontext
def create_user_cli(name, email, password, role, created_by):
    """
    Create an account in the hierarchy.

    Creators: admin creates admin/stalkist/dealer, stalkist creates dealer,
    dealer creates salesman.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    creator_id = None
    if created_by:
        creator = _user_by_email(created_by)
        if creator is None:
            raise click.ClickException(f"Creating user {created_by} not found")
        creator_id = creator.id

    try:
        user = create_user(name, email, password, role, created_by_id=creator_id)
    except DomainError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created {user.role}: {user.name} ({user.email}) ID: {user.id}")
    if created_by:
        click.echo(f"     Created by: {created_by}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLE_CHOICES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their role and creator."""
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == normalize_role(role))

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Role':<10} {'Name':<24} {'Email':<32} {'Active':<8} {'Created by'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        creator = user.created_by.email if user.created_by else "-"
        click.echo(f"{user.id:<5} {user.role:<10} {user.name:<24} {user.email:<32} {active_str:<8} {creator}")

    click.echo("="*100 + "\n")


@users_group.command('deactivate')
@click.argument('email')
@with_appcontext
def deactivate_user(email):
    """Deactivate an account and revoke all of its sessions."""
    user = _user_by_email(email)
    if user is None:
        raise click.ClickException(f"User {email} not found")

    user.is_active = False
    db.session.commit()
    revoked = revoke_all_user_sessions(user.id, reason="User account deactivated")
    click.echo(f"PASS Deactivated {user.email}; revoked {revoked} session(s)")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ROLE_CHOICES), help='Filter by role')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List permissions, optionally filtered by role or category."""
    perms = sorted(PERMISSION_DEFINITIONS, key=lambda p: (p[3], p[0]))

    if role:
        granted = get_role_permissions(normalize_role(role))
        perms = [p for p in perms if p[0] in granted]
    if category:
        perms = [p for p in perms if p[3] == category.upper()]

    click.echo(f"\n{'='*80}")
    title = "All Permissions"
    if role:
        title = f"Permissions for role: {normalize_role(role).upper()}"
    click.echo(title)
    click.echo(f"{'='*80}\n")

    current_category = None
    for code, name, _desc, cat in perms:
        if cat != current_category:
            if current_category:
                click.echo("")
            click.echo(f"CATEGORY {cat}")
            click.echo("-"*80)
            current_category = cat

        click.echo(f"  {code:<28} {name}")

    click.echo(f"\n Total: {len(perms)} permissions\n")


@click.group('products')
def products_group():
    """Catalog seeding commands."""


@products_group.command('create')
@click.option('--title', required=True, help='Product title')
@click.option('--description', default=None, help='Description')
@click.option('--packet-price-cents', type=int, required=True, help='Price of one packet, in cents')
@click.option('--packets-per-strip', type=int, default=1, show_default=True, help='Packets in one strip')
@click.option('--stock', type=int, default=0, show_default=True, help='Opening stock, in strips')
@click.option('--image-url', default=None, help='Image URL')
@click.option('--created-by', 'created_by', default=None, help='Email of the admin recorded as creator')
@with_appcontext
def create_product_cli(title, description, packet_price_cents, packets_per_strip, stock, image_url, created_by):
    """Create a product with opening stock."""
    actor_id = None
    if created_by:
        actor = _user_by_email(created_by)
        if actor is None:
            raise click.ClickException(f"User {created_by} not found")
        actor_id = actor.id

    patch = {
        "title": title.strip(),
        "description": description,
        "packet_price_cents": packet_price_cents,
        "packets_per_strip": packets_per_strip,
        "stock": stock,
        "image_url": image_url,
    }

    try:
        if not patch["title"]:
            raise click.ClickException("title cannot be blank")
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch, actor_id=actor_id)
    except DomainError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created product: {product.title} (ID: {product.id}, stock: {product.stock} strips)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(products_group)
