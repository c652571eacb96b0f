# Overview: Flask CLI command groups for bootstrap, catalog, stock, and sales.

# backend/outlet_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask items add --code A1 --name "Rice 1kg" --price 100.00 --discount 10 --reorder-level 50
# - python -m flask items list
#
# Customers:
# - python -m flask customers add --name "Nimal Perera" --phone 0771234567
# - python -m flask customers list
#
# Stock:
# - python -m flask stock receive --code A1 --quantity 100 --purchase-date 2026-10-01 --expiry-date 2027-01-01
# - python -m flask stock move --code A1 --quantity 20 --channel SHELF
# - python -m flask stock reorder --channel SHELF
#   Items whose channel quantity is below their reorder level.
#
# Sales:
# - python -m flask sales preview A1:2 B7:1 --discount 5.00
#   Price a cart without selling it.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models.enums import Channel
from .money import Money
from .services import catalog_service, customer_service, reporting_service, sales_service, stock_service
from .services.context import current_context
from .services.outcome import OperationFailed
from .validation import ValidationError, parse_date, parse_int


def _unwrap(outcome):
    """Turn a failed outcome into a click error (non-zero exit, message on stderr)."""
    try:
        return outcome.unwrap()
    except OperationFailed as e:
        raise click.ClickException(f"{e.kind.value}: {e}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables and data are kept)."""
    db.create_all()
    click.echo("PASS Database initialized.")


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


@click.group('items')
def items_group():
    """Catalog item management."""


@items_group.command('add')
@click.option('--code', required=True, help='Item code (normalized to upper case)')
@click.option('--name', required=True, help='Display name')
@click.option('--price', required=True, help='Unit price, e.g. 100.00')
@click.option('--discount', default="0", show_default=True, help='Item discount percentage (0-100)')
@click.option('--reorder-level', default=0, type=int, show_default=True, help='Reorder threshold')
@with_appcontext
def add_item(code, name, price, discount, reorder_level):
    """Add an item to the catalog."""
    item = _unwrap(catalog_service.create_item(
        current_context().store,
        code=code,
        name=name,
        unit_price=price,
        discount_percent=discount,
        reorder_level=reorder_level,
    ))
    click.echo(f"PASS Created item {item.code} ({item.name}) at {item.unit_price}")


@items_group.command('list')
@with_appcontext
def list_items():
    """List all catalog items."""
    items = _unwrap(catalog_service.list_items(current_context().store))
    if not items:
        click.echo("No items found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'Code':<12} {'Name':<28} {'Price':>12} {'Disc %':>8} {'Reorder':>8}")
    click.echo("="*72)
    for item in items:
        click.echo(
            f"{item.code:<12} {item.name[:28]:<28} {item.unit_price.amount:>12,.2f} "
            f"{item.discount_percent:>8} {item.reorder_level:>8}"
        )


@click.group('customers')
def customers_group():
    """Customer registry."""


@customers_group.command('add')
@click.option('--name', required=True, help='Customer name')
@click.option('--phone', required=True, help='Phone number (unique)')
@with_appcontext
def add_customer(name, phone):
    """Register a customer."""
    customer = _unwrap(customer_service.register_customer(current_context().store, name=name, phone=phone))
    click.echo(f"PASS Registered customer {customer.id}: {customer.name} ({customer.phone})")


@customers_group.command('list')
@with_appcontext
def list_customers():
    """List registered customers."""
    customers = _unwrap(customer_service.list_customers(current_context().store))
    if not customers:
        click.echo("No customers found.")
        return

    click.echo(f"{'ID':>6} {'Name':<32} {'Phone':<16}")
    for customer in customers:
        click.echo(f"{customer.id:>6} {customer.name[:32]:<32} {customer.phone:<16}")


@click.group('stock')
def stock_group():
    """Batch receiving, channel moves, and reorder checks."""


@stock_group.command('receive')
@click.option('--code', required=True, help='Item code')
@click.option('--quantity', required=True, help='Units received')
@click.option('--purchase-date', required=True, help='YYYY-MM-DD')
@click.option('--expiry-date', default=None, help='YYYY-MM-DD (omit for non-perishables)')
@with_appcontext
def receive(code, quantity, purchase_date, expiry_date):
    """Record a supplier batch."""
    try:
        quantity = parse_int(quantity, "quantity", minimum=1)
        purchased = parse_date(purchase_date, "purchase date")
        expires = parse_date(expiry_date, "expiry date", required=False)
    except ValidationError as e:
        raise click.BadParameter(str(e))

    batch = _unwrap(stock_service.receive_stock(current_context().store, code, quantity, purchased, expires))
    click.echo(f"PASS Received batch {batch.id}: {batch.quantity_received} x {batch.item.code}")


@stock_group.command('move')
@click.option('--code', required=True, help='Item code')
@click.option('--quantity', required=True, help='Units to move')
@click.option(
    '--channel',
    type=click.Choice([c.value for c in Channel], case_sensitive=False),
    default=Channel.SHELF.value,
    show_default=True,
)
@with_appcontext
def move(code, quantity, channel):
    """Move stock from batches (near-expiry first) into a channel."""
    try:
        quantity = parse_int(quantity, "quantity", minimum=1)
    except ValidationError as e:
        raise click.BadParameter(str(e))

    context = current_context()
    movement = _unwrap(stock_service.move_stock(
        context.store, code, quantity, Channel(channel.upper()),
        near_expiry_days=context.near_expiry_days,
    ))
    for draw in movement.draws:
        click.echo(f"  batch {draw.batch.id}: -{draw.quantity} (left {draw.batch.quantity_remaining})")
    click.echo(
        f"PASS Moved {movement.quantity} x {movement.item_code} to {movement.channel.value} "
        f"(now {movement.channel_quantity})"
    )


@stock_group.command('reorder')
@click.option(
    '--channel',
    type=click.Choice([c.value for c in Channel], case_sensitive=False),
    default=Channel.SHELF.value,
    show_default=True,
)
@with_appcontext
def reorder(channel):
    """List items below their reorder level."""
    report = _unwrap(reporting_service.reorder_report(current_context().store, channel=Channel(channel.upper())))
    if not report["items"]:
        click.echo(f"All {report['channel']} stock is at or above reorder level.")
        return

    click.echo(f"{'Code':<12} {'Name':<28} {'Qty':>6} {'Reorder':>8} {'Short':>6}")
    for row in report["items"]:
        click.echo(
            f"{row['item_code']:<12} {row['item_name'][:28]:<28} {row['quantity']:>6} "
            f"{row['reorder_level']:>8} {row['shortfall']:>6}"
        )


@click.group('sales')
def sales_group():
    """Sale utilities."""


def _parse_cart_arg(value: str) -> sales_service.CartLine:
    code, sep, quantity = value.partition(":")
    if not sep:
        raise click.BadParameter(f"expected CODE:QTY, got {value!r}")
    try:
        return sales_service.CartLine(item_code=code, quantity=parse_int(quantity, "quantity", minimum=1))
    except ValidationError as e:
        raise click.BadParameter(str(e))


@sales_group.command('preview')
@click.argument('lines', nargs=-1, required=True)
@click.option('--discount', default=None, help='Manual bill discount, e.g. 5.00')
@with_appcontext
def preview(lines, discount):
    """Price a cart given as CODE:QTY pairs."""
    cart = [_parse_cart_arg(line) for line in lines]
    try:
        manual_discount = Money.of(discount) if discount is not None else None
    except ValidationError as e:
        raise click.BadParameter(str(e))

    result = _unwrap(sales_service.preview_sale(current_context().store, cart, discount=manual_discount))
    for line in result.lines:
        click.echo(
            f"{line.item_code:<12} {line.item_name[:24]:<24} {line.quantity:>4} x "
            f"{line.unit_price.amount:>10,.2f} = {line.total_price.amount:>10,.2f}"
        )
    click.echo(f"Subtotal: {result.subtotal.to_display_string()}")
    if not result.discount.is_zero():
        click.echo(f"Discount: {result.discount.to_display_string()}")
    click.echo(f"Total:    {result.total.to_display_string()}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
    app.cli.add_command(customers_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(sales_group)
