# Overview: Flask CLI command groups for bootstrap, printer setup, inspection, and maintenance.

# backend/restopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create missing tables, then seed the JUVISY demo restaurant (idempotent).
# - python -m flask system seed
#   Seed demo data only: super-admin, JUVISY restaurant, users, catalogue, printer.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Receipt printer:
# - python -m flask printer configure --nom JUVISY --adresse "..." --message "..." --telephone "+243..."
#   Create or update "Imprimante POS <nom>" as the default printer. Safe to re-run.
# - python -m flask printer list [--restaurant-id 1]
#   List printers with their default flag.
#
# User inspection/bootstrap:
# - python -m flask users list [--restaurant-id 1]
#   List users with role and active status.
# - python -m flask users create --restaurant-id 1 --name "Caisse 2" --email caisse2@juvisy.com --role caisse
#   Create a restaurant user (prompts if options are omitted).
# - python -m flask users create-super-admin --name "Ops" --email ops@restopos.local
#   Create an installation-wide super-admin (no restaurant).
#
# Restaurants:
# - python -m flask restaurants list [--deleted]
#   List restaurants with their current plan.
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.
# - python -m flask maintenance cleanup-sessions --days 30
#   Delete expired or revoked session tokens older than N days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .factories import seed_demo_data
from .models import Printer, Restaurant, User
from .models.auth import ASSIGNABLE_ROLES, ROLE_SUPER_ADMIN
from .services import maintenance_service
from .services.auth_service import PasswordValidationError, hash_password, validate_password_strength
from .services.printer_service import configure_default_printer
from .services.subscription_service import SubscriptionLimitError, get_current_subscription
from .services.user_service import create_user
from .validation import ConflictError, ValidationError


def _echo_table(headers, rows):
    """Boxed two-dimensional table, column widths fitted to the content."""
    widths = [
        max(len(str(cell)) for cell in column)
        for column in zip(headers, *rows)
    ]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells):
        return "| " + " | ".join(str(c).ljust(w) for c, w in zip(cells, widths)) + " |"

    click.echo(border)
    click.echo(line(headers))
    click.echo(border)
    for row in rows:
        click.echo(line(row))
    click.echo(border)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize a RestoPOS installation.

    Creates any missing tables, then seeds the demo data:
    - Super-admin: superadmin@juvisy.com
    - Restaurant JUVISY on the premium plan
    - Users: admin@juvisy.com, caisse@juvisy.com, stock@juvisy.com
    - Beverage catalogue and the default receipt printer
    - All passwords default to: "password"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing RestoPOS...")
    db.create_all()
    click.echo("PASS Tables ready")

    created = seed_demo_data()
    _echo_seed_summary(created)

    click.echo("")
    click.echo("DONE RestoPOS ready. Default password for seeded users: password")


@system_group.command('seed')
@with_appcontext
def seed_system():
    """Seed the demo restaurant; existing rows are left untouched."""
    created = seed_demo_data()
    _echo_seed_summary(created)


def _echo_seed_summary(created: dict) -> None:
    for key in ("restaurants", "subscriptions", "users", "products", "printers"):
        count = created.get(key, 0)
        if count:
            click.echo(f"PASS Created {count} {key}")
        else:
            click.echo(f"SKIP {key.capitalize()} already present")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to load demo data.")


@click.group('printer')
def printer_group():
    """Receipt printer setup commands."""


@printer_group.command('configure')
@click.option('--nom', 'name', default='JUVISY', show_default=True, help="Nom de l'établissement")
@click.option('--adresse', 'address', default=None, help='Adresse complète')
@click.option('--message', default=None, help='Message personnalisé')
@click.option('--telephone', 'phone', default=None, help='Numéro de téléphone')
@click.option('--restaurant-id', type=int, default=None, help='Attach the printer to this restaurant')
@with_appcontext
def configure_printer_cli(name, address, message, phone, restaurant_id):
    """
    Configure the default printer with the establishment details.

    The printer is keyed by "Imprimante POS <nom>", so running the command
    again with the same name updates the same printer.
    """
    if restaurant_id is not None and db.session.get(Restaurant, restaurant_id) is None:
        click.echo(f"FAIL Restaurant ID {restaurant_id} not found")
        raise SystemExit(1)

    printer, _ = configure_default_printer(
        name=name,
        address=address,
        message=message,
        phone=phone,
        restaurant_id=restaurant_id,
    )

    click.echo("Imprimante configurée avec succès !")
    _echo_table(
        ["Champ", "Valeur"],
        [
            ["Nom", printer.restaurant_name],
            ["Adresse", printer.restaurant_address],
            ["Téléphone", printer.restaurant_phone or "Non renseigné"],
            ["Message", printer.receipt_message],
        ],
    )


@printer_group.command('list')
@click.option('--restaurant-id', type=int, help='Filter by restaurant ID')
@with_appcontext
def list_printers_cli(restaurant_id):
    """List printers; '*' marks the default."""
    query = db.session.query(Printer)
    if restaurant_id:
        query = query.filter(Printer.restaurant_id == restaurant_id)
    printers = query.order_by(Printer.id.asc()).all()

    if not printers:
        click.echo("No printers found.")
        return

    _echo_table(
        ["ID", "Restaurant", "Name", "Type", "Width", "Active", "Default"],
        [
            [
                p.id,
                p.restaurant_id if p.restaurant_id is not None else "-",
                p.name,
                p.connection_type,
                p.paper_width,
                "Yes" if p.is_active else "No",
                "*" if p.is_default else "",
            ]
            for p in printers
        ],
    )


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--restaurant-id', type=int, prompt=True, help='Restaurant ID')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ASSIGNABLE_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(restaurant_id, name, email, password, role):
    """
    Create a restaurant user.

    MULTI-TENANT: The user belongs to the given restaurant and counts
    against its plan's max_users.

    Password must be at least 8 characters.
    """
    restaurant = db.session.get(Restaurant, restaurant_id)
    if restaurant is None or restaurant.is_deleted:
        click.echo(f"FAIL Restaurant ID {restaurant_id} not found")
        raise SystemExit(1)

    try:
        user = create_user(
            restaurant_id=restaurant.id,
            name=name,
            email=email,
            password=password,
            role=role,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        raise SystemExit(1)
    except SubscriptionLimitError as e:
        click.echo(f"FAIL {str(e)}")
        raise SystemExit(1)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{role}'")
    click.echo(f"     Restaurant: {restaurant.name} (ID: {restaurant.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('create-super-admin')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_super_admin_cli(name, email, password):
    """
    Create a super-admin account.

    Super-admins have no restaurant; they manage restaurants and
    subscriptions across the installation and bypass permission checks.
    """
    email = email.strip().lower()
    if db.session.query(User).filter(db.func.lower(User.email) == email).first():
        click.echo(f"FAIL User '{email}' already exists")
        raise SystemExit(1)

    try:
        validate_password_strength(password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        raise SystemExit(1)

    user = User(
        restaurant_id=None,
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_SUPER_ADMIN,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()

    click.echo(f"PASS Created super-admin: {user.name} ({user.email})")
    click.echo(f"     User ID: {user.id}")


@users_group.command('list')
@click.option('--restaurant-id', type=int, help='Filter by restaurant ID')
@with_appcontext
def list_users(restaurant_id):
    """List all users with their roles."""
    query = db.session.query(User)

    if restaurant_id:
        query = query.filter_by(restaurant_id=restaurant_id)

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Rest.':<6} {'Name':<28} {'Email':<34} {'Active':<8} {'Role'}")
    click.echo("="*100)

    for user in users:
        restaurant = user.restaurant_id if user.restaurant_id is not None else "-"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {restaurant:<6} {user.name:<28} {user.email:<34} {active_str:<8} {user.role}")

    click.echo("="*100 + "\n")


@click.group('restaurants')
def restaurants_group():
    """Restaurant (tenant) inspection commands."""


@restaurants_group.command('list')
@click.option('--deleted', is_flag=True, help='Show soft-deleted restaurants instead')
@with_appcontext
def list_restaurants_cli(deleted):
    """List restaurants with status and current plan."""
    query = db.session.query(Restaurant)
    if deleted:
        query = query.filter(Restaurant.deleted_at.isnot(None))
    else:
        query = query.filter(Restaurant.deleted_at.is_(None))
    restaurants = query.order_by(Restaurant.id.asc()).all()

    if not restaurants:
        click.echo("No restaurants found.")
        return

    rows = []
    for r in restaurants:
        subscription = get_current_subscription(r.id)
        rows.append([
            r.id,
            r.name,
            r.slug,
            r.email or "-",
            "Yes" if r.is_active else "No",
            subscription.plan if subscription else "none",
        ])
    _echo_table(["ID", "Name", "Slug", "Email", "Active", "Plan"], rows)


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    if retention_days < 1:
        raise click.BadParameter("must be >= 1", param_hint="--retention-days")
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


@maintenance_group.command('cleanup-sessions')
@click.option('--days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(days):
    """Delete expired or revoked session tokens older than N days."""
    deleted = maintenance_service.cleanup_sessions(days=days)
    click.echo(f"Deleted {deleted} session tokens older than {days} days.")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(printer_group)
    app.cli.add_command(users_group)
    app.cli.add_command(restaurants_group)
    app.cli.add_command(maintenance_group)
