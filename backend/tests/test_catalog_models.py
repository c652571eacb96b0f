from datetime import date
from decimal import Decimal

import pytest

from outlet_pos.models import Bill, BillConstructionError, BillItem, ChannelStock, Item, StockBatch
from outlet_pos.models.catalog import normalize_item_code
from outlet_pos.models.enums import Channel, PaymentMethod, TransactionType
from outlet_pos.money import Money
from outlet_pos.validation import ValidationError


def make_item(**overrides):
    fields = {
        "code": "a1",
        "name": "Rice 1kg",
        "unit_price": Decimal("100.00"),
        "discount_percent": Decimal("10"),
        "reorder_level": 50,
    }
    fields.update(overrides)
    return Item(**fields)


def test_item_code_is_trimmed_and_upper_cased():
    assert normalize_item_code("  ab-12 ") == "AB-12"
    assert make_item(code=" x9 ").code == "X9"


@pytest.mark.parametrize("bad", [None, "", "   ", "X" * 65])
def test_item_code_rejects_blank_or_oversized(bad):
    with pytest.raises(ValidationError):
        normalize_item_code(bad)


def test_item_code_cannot_change_once_set():
    item = make_item()
    item.code = "a1"  # same code after normalization is allowed
    with pytest.raises(ValidationError):
        item.code = "B2"


def test_item_setters_revalidate_on_every_assignment():
    item = make_item()

    with pytest.raises(ValidationError):
        item.unit_price = Decimal("-1")
    with pytest.raises(ValidationError):
        item.discount_percent = Decimal("100.01")
    with pytest.raises(ValidationError):
        item.reorder_level = -1
    with pytest.raises(ValidationError):
        item.name = "   "

    item.unit_price = "120.5"
    item.discount_percent = 0
    assert item.unit_price == Money("120.50")
    assert item.discount_percent == 0


def test_discount_percent_is_kept_at_two_decimal_places():
    item = make_item()

    item.discount_percent = "12.345"

    assert item.discount_percent == Decimal("12.35")
    assert item.to_dict()["discount_percent"] == "12.35"


def test_item_total_price_applies_discount_after_quantity():
    item = make_item()
    assert item.calculate_total_price(2) == Money("180.00")
    assert item.needs_reorder(49)
    assert not item.needs_reorder(50)


def test_stock_batch_invariants():
    item = make_item()
    with pytest.raises(ValidationError):
        StockBatch(item=item, quantity_received=0, purchase_date=date(2026, 1, 1))
    with pytest.raises(ValidationError):
        StockBatch(
            item=item,
            quantity_received=5,
            purchase_date=date(2026, 2, 1),
            expiry_date=date(2026, 1, 31),
        )

    batch = StockBatch(item=item, quantity_received=10, purchase_date=date(2026, 1, 1), expiry_date=date(2026, 3, 1))
    assert batch.quantity_remaining == 10
    batch.reduce_stock(4)
    assert batch.quantity_remaining == 6
    with pytest.raises(ValidationError):
        batch.reduce_stock(7)
    with pytest.raises(ValidationError):
        batch.reduce_stock(0)

    assert batch.days_until_expiry(date(2026, 2, 20)) == 9
    assert not batch.is_expired(date(2026, 3, 1))
    assert batch.is_expired(date(2026, 3, 2))


def test_channel_stock_never_goes_negative():
    stock = ChannelStock(item=make_item(), channel=Channel.SHELF, quantity=3)
    stock.add_stock(2)
    assert stock.has_available(5)
    stock.reduce_stock(5)
    assert stock.quantity == 0
    with pytest.raises(ValidationError):
        stock.reduce_stock(1)
    with pytest.raises(ValidationError):
        ChannelStock(item=make_item(), channel=Channel.WEBSITE, quantity=-1)


def test_bill_item_snapshots_price_and_is_frozen():
    item = make_item()
    line = BillItem.for_item(item, 2)
    assert line.unit_price == Money("100.00")
    assert line.total_price == Money("180.00")

    item.unit_price = Decimal("150.00")
    assert line.unit_price == Money("100.00")

    with pytest.raises(BillConstructionError):
        line.quantity = 3
    with pytest.raises(BillConstructionError):
        BillItem.for_item(item, 0)


def test_bill_fields_are_frozen_after_construction():
    line = BillItem.for_item(make_item(), 1)
    bill = Bill(
        serial_number="20261019-000001",
        transaction_type=TransactionType.COUNTER,
        payment_method=PaymentMethod.CASH,
        subtotal_amount=Decimal("90.00"),
        discount_amount=Decimal("0.00"),
        total_amount=Decimal("90.00"),
        items=[line],
    )

    assert line.line_number == 1
    with pytest.raises(BillConstructionError):
        bill.total_amount = Decimal("1.00")
    with pytest.raises(BillConstructionError):
        bill.items.append(BillItem.for_item(make_item(code="B2"), 1))


def test_transaction_types_map_to_channels():
    assert TransactionType.COUNTER.channel is Channel.SHELF
    assert TransactionType.ONLINE.channel is Channel.WEBSITE
    assert PaymentMethod.CREDIT_CARD.display_name == "Credit Card"
