# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/autoshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent; prefer `flask db upgrade` in production).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Inventory inspection/repair:
# - python -m flask inventory list [--low-stock]
#   List products with stock on hand (optionally only those at/below LOW_STOCK_THRESHOLD).
# - python -m flask inventory adjust 12 40
#   Set product 12's stock to 40 after a physical recount (booked as ADJUSTMENT).
# - python -m flask inventory movements 12
#   Show the stock movement history of product 12.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ShopError
from .extensions import db
from .models import Product
from .services import products_service, stock_ledger


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

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('inventory')
def inventory_group():
    """Stock inspection and recount commands."""


@inventory_group.command('list')
@click.option('--low-stock', is_flag=True, help='Only products at or below LOW_STOCK_THRESHOLD')
@with_appcontext
def list_inventory(low_stock):
    """List products with their stock on hand."""
    if low_stock:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
        products = products_service.list_low_stock(threshold)
        click.echo(f"Products with stock <= {threshold}:")
    else:
        products = db.session.query(Product).order_by(Product.part_name.asc()).all()

    if not products:
        click.echo("No products found.")
        return

    for p in products:
        click.echo(
            f"{p.id:>5}  {p.part_name:<40} {p.car_brand} {p.car_model} ({p.year_range})"
            f"  stock={p.stock_quantity}  bin={p.bin_location or '-'}"
        )


@inventory_group.command('adjust')
@click.argument('product_id', type=int)
@click.argument('quantity', type=int)
@with_appcontext
def adjust_inventory(product_id, quantity):
    """Set PRODUCT_ID's stock to QUANTITY (physical recount)."""
    try:
        product = products_service.update_product(
            product_id=product_id,
            patch={"stock_quantity": quantity},
        )
    except ShopError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS {product.part_name}: stock is now {product.stock_quantity}")


@inventory_group.command('movements')
@click.argument('product_id', type=int)
@with_appcontext
def list_product_movements(product_id):
    """Show stock movement history for PRODUCT_ID."""
    movements = stock_ledger.list_movements(product_id)
    if not movements:
        click.echo("No movements recorded.")
        return
    for m in movements:
        ref = f"{m.transaction_kind}#{m.transaction_id}" if m.transaction_kind else "-"
        click.echo(f"{m.occurred_at}  {m.reason:<17} {m.quantity_delta:>+6}  -> {m.stock_after:<6} {ref}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
