"""
Pytest fixtures for outlet POS backend tests.

Provides a file-backed SQLite store per test, seeded catalog helpers,
recording collaborators for the sale workflow, and a Flask app/client pair.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine

from outlet_pos import create_app
from outlet_pos.extensions import db
from outlet_pos.models import ChannelStock, Item
from outlet_pos.models.enums import Channel
from outlet_pos.services.payment_gateway import MockPaymentGateway
from outlet_pos.services.serial_numbers import DatePrefixedSerialGenerator
from outlet_pos.services.unit_of_work import DataStore, run_in_transaction

BUSINESS_DAY = date(2026, 10, 19)
SALE_TIME = datetime(2026, 10, 19, 10, 30, 0)


class RecordingPrinter:
    """Bill printer double: remembers what it printed, optionally fails."""

    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.printed = []

    def print(self, bill):
        if self.fail_with is not None:
            raise self.fail_with
        self.printed.append(bill.serial_number)


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file per test; file-backed so several threads can share it."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'outlet_pos.sqlite3'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    db.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return DataStore.from_engine(engine)


@pytest.fixture
def printer():
    return RecordingPrinter()


@pytest.fixture
def failing_printer():
    return RecordingPrinter(fail_with=OSError("printer offline"))


@pytest.fixture
def gateway():
    return MockPaymentGateway(approve=True)


@pytest.fixture
def collaborators(printer, gateway):
    """Keyword arguments for sales_service.process_sale and its wrappers."""
    return {
        "serial_generator": DatePrefixedSerialGenerator(clock=lambda: BUSINESS_DAY),
        "payment_gateway": gateway,
        "printer": printer,
        "now": SALE_TIME,
    }


@pytest.fixture
def seed_item(store):
    """
    Create an item with optional shelf/website quantities.

    Usage: seed_item("A1", "Rice 1kg", "100.00", discount="10", shelf=5)
    """
    def _seed(code, name, price, *, discount="0", reorder_level=0, shelf=None, website=None):
        def _work(session):
            item = Item(
                code=code,
                name=name,
                unit_price=Decimal(price),
                discount_percent=Decimal(discount),
                reorder_level=reorder_level,
            )
            session.add(item)
            session.flush()
            for channel, quantity in ((Channel.SHELF, shelf), (Channel.WEBSITE, website)):
                if quantity is not None:
                    session.add(ChannelStock(item=item, channel=channel, quantity=quantity))
            return item

        return run_in_transaction(store, _work)

    return _seed


@pytest.fixture
def channel_quantity(store):
    """Read the current quantity of an item in a channel (None when there is no row)."""
    def _read(code, channel):
        def _work(session):
            row = (
                session.query(ChannelStock)
                .join(Item, Item.id == ChannelStock.item_id)
                .filter(Item.code == code, ChannelStock.channel == Channel(channel))
                .first()
            )
            return row.quantity if row is not None else None

        return run_in_transaction(store, _work, read_only=True)

    return _read


@pytest.fixture
def app(tmp_path):
    """Create application for testing."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'app.sqlite3'}",
        "BILL_ARCHIVE_DIR": str(tmp_path / "bills"),
        "LOG_LEVEL": "DEBUG",
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
