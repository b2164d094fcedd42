# urbanpos/cli.py
import secrets
from datetime import timedelta

import click
import pandas as pd
from flask import current_app

from .extensions import db
from .model import AccessKey, Category, Coupon, PAGE_PERMISSIONS, Product
from .model.coupon import PERCENTAGE
from .pos.coupons import utcnow
from .services.rate_service import RateSyncError, rates_are_stale, sync_exchange_rates
from .services.settings_service import get_settings
from .utils.money import D

EXPORT_COLUMNS = {
    "ID": "id",
    "Name": "name",
    "Description": "description",
    "Category": "category_name",
    "Price": "price",
    "Stock": "stock_quantity",
    "Reorder Threshold": "reorder_threshold",
    "Image URL": "image_url",
    "Image Hint": "image_hint",
}


@click.command("create-master-key")
@click.option("--tag-name", default="Master", show_default=True)
@click.option("--key", default=None, help="Defaults to a random key.")
def create_master_key(tag_name, key):
    key = (key or secrets.token_urlsafe(9)).strip()
    if len(key) < 6:
        raise click.BadParameter("key must be at least 6 characters", param_hint="--key")
    if AccessKey.query.filter_by(key=key).first():
        click.echo("Access key already exists"); return
    row = AccessKey(key=key, tag_name=tag_name, is_master_key=True)
    row.permissions = PAGE_PERMISSIONS
    db.session.add(row); db.session.commit()
    click.echo(f"Master key created: {row.id} {row.key}")


@click.command("sync-rates")
@click.option("--if-stale", is_flag=True, help="Only sync when rates are older than RATE_SYNC_MAX_AGE_HOURS.")
def sync_rates(if_stale):
    if if_stale:
        max_age = current_app.config.get("RATE_SYNC_MAX_AGE_HOURS", 24)
        if not rates_are_stale(get_settings(), max_age):
            click.echo("Exchange rates are fresh, nothing to do"); return
    try:
        count = sync_exchange_rates()
    except RateSyncError as e:
        raise click.ClickException(str(e))
    click.echo(f"Synced {count} exchange rates")


@click.command("seed-demo")
def seed_demo():
    if Product.query.first():
        click.echo("Products already exist, skipping"); return

    drinks = Category(name="Drinks", description="Hot and cold drinks")
    snacks = Category(name="Snacks")
    db.session.add_all([drinks, snacks])
    db.session.add_all([
        Product(name="Espresso", price=D("2.50"), stock_quantity=100, category=drinks),
        Product(name="Latte", price=D("3.75"), stock_quantity=80, category=drinks),
        Product(name="Iced Tea", price=D("2.95"), stock_quantity=6, category=drinks),
        Product(name="Croissant", price=D("2.20"), stock_quantity=40, category=snacks),
        Product(name="Chocolate Bar", price=D("1.50"), stock_quantity=0, category=snacks),
    ])
    db.session.add(Coupon(
        code="WELCOME10",
        discount_type=PERCENTAGE,
        discount_value=D("10"),
        expiration_date=utcnow() + timedelta(days=30),
        usage_limit=100,
        usage_count=0,
    ))
    get_settings()
    db.session.commit()
    click.echo("Demo catalog created")


@click.command("export-products")
@click.argument("path", type=click.Path(dir_okay=False))
def export_products(path):
    rows = [
        {column: getattr(p, attr) for column, attr in EXPORT_COLUMNS.items()}
        for p in Product.query.order_by(Product.id.asc()).all()
    ]
    df = pd.DataFrame(rows, columns=list(EXPORT_COLUMNS))
    df["Price"] = df["Price"].map(lambda v: float(v) if v is not None else None)
    df.to_excel(path, index=False)
    click.echo(f"{len(df)} products exported to {path}")


def _cell(row, column):
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    return value


def _category_for(name, cache):
    name = str(name).strip()
    if name not in cache:
        cache[name] = Category.query.filter_by(name=name).first() or Category(name=name)
        db.session.add(cache[name])
    return cache[name]


@click.command("import-products")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_products(path):
    """Create or update products from a spreadsheet in the export layout."""
    df = pd.read_excel(path)
    df.columns = df.columns.str.strip()
    missing = {"Name", "Price"} - set(df.columns)
    if missing:
        raise click.ClickException(f"missing columns: {', '.join(sorted(missing))}")

    categories = {}
    created = updated = 0
    for n, row in enumerate(df.to_dict("records"), start=2):
        name = _cell(row, "Name")
        if not name:
            raise click.ClickException(f"row {n}: Name is required")
        price = D(round(float(_cell(row, "Price") or 0), 2))
        if price <= 0:
            raise click.ClickException(f"row {n}: Price must be positive")
        stock = int(_cell(row, "Stock") or 0)
        if stock < 0:
            raise click.ClickException(f"row {n}: Stock must be non-negative")

        pid = _cell(row, "ID")
        product = db.session.get(Product, int(pid)) if pid is not None else None
        if product is None:
            product = Product()
            db.session.add(product)
            created += 1
        else:
            updated += 1

        product.name = str(name).strip()
        product.price = price
        product.stock_quantity = stock
        threshold = _cell(row, "Reorder Threshold")
        if threshold is not None:
            product.reorder_threshold = int(threshold)
        for column, attr in (("Description", "description"), ("Image URL", "image_url"), ("Image Hint", "image_hint")):
            if column in df.columns:
                setattr(product, attr, _cell(row, column))
        category = _cell(row, "Category")
        product.category = _category_for(category, categories) if category else None

    db.session.commit()
    click.echo(f"{created} products created, {updated} updated from {path}")


def register_cli(app):
    for command in (create_master_key, sync_rates, seed_demo, export_products, import_products):
        app.cli.add_command(command)
