import os
import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import upgrade as alembic_upgrade, stamp as alembic_stamp, migrate as alembic_migrate

from models import db
from models.product import Product
from app.utils import transactional


STARTER_CATALOG = [
    {"name": "Cold Brew Coffee", "category": "Drinks", "price_cents": 450, "sort_order": 10},
    {"name": "Sparkling Water 6-Pack", "category": "Drinks", "price_cents": 699, "sort_order": 20},
    {"name": "Kettle Chips", "category": "Snacks", "price_cents": 349, "sort_order": 30},
    {"name": "Dark Chocolate Bar", "category": "Snacks", "price_cents": 299, "sort_order": 40},
    {"name": "Fresh Bananas (bunch)", "category": "Produce", "price_cents": 199, "sort_order": 50},
    {"name": "Whole Milk 1/2 Gallon", "category": "Dairy", "price_cents": 429, "sort_order": 60},
    {"name": "Paper Towels 2-Roll", "category": "Household", "price_cents": 599, "sort_order": 70},
    {"name": "Ibuprofen 24ct", "category": "Pharmacy", "price_cents": 899, "sort_order": 80},
]


def _assert_safe_for_upgrade():
    # Prevent accidental prod upgrades unless explicitly allowed
    env = (current_app.config.get("ENV") or "").lower()
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production" or env == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to run DB migration in production without ALLOW_DB_MIGRATIONS=true")


@click.command("db-migrate-safe")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_migrate_safe(message):
    """Generate a new migration script from current models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@click.command("db-upgrade-safe")
@with_appcontext
def db_upgrade_safe():
    """Apply migrations to the configured database."""
    _assert_safe_for_upgrade()
    alembic_upgrade()
    click.echo("Database upgraded.")


@click.command("db-stamp-safe")
@click.option("--revision", default="head", help="Revision to stamp, default 'head'")
@with_appcontext
def db_stamp_safe(revision):
    """Mark the database at a given revision without running migrations."""
    _assert_safe_for_upgrade()
    alembic_stamp(revision)
    click.echo(f"Database stamped at {revision}.")


def seed_products(force: bool = False) -> int:
    """Insert the starter catalog. Returns the number of products added."""
    existing = Product.query.count()
    if existing and not force:
        return 0
    with transactional("Failed to seed products"):
        if force:
            Product.query.delete()
        for entry in STARTER_CATALOG:
            db.session.add(Product(**entry))
    return len(STARTER_CATALOG)


@click.command("seed-products")
@click.option("--force", is_flag=True, help="Replace the existing catalog")
@with_appcontext
def seed_products_command(force):
    """Load the starter product catalog."""
    added = seed_products(force=force)
    if added:
        click.echo(f"Seeded {added} products.")
    else:
        click.echo("Catalog already populated; use --force to replace it.")


def register_cli(app):
    app.cli.add_command(db_migrate_safe)
    app.cli.add_command(db_upgrade_safe)
    app.cli.add_command(db_stamp_safe)
    app.cli.add_command(seed_products_command)
