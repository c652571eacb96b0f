from datetime import date, timedelta

from outlet_pos.models.enums import Channel
from outlet_pos.services import stock_service
from outlet_pos.services.outcome import ErrorKind

TODAY = date(2026, 10, 19)


def _days(n):
    return TODAY + timedelta(days=n)


def test_receive_stock_creates_batch(store, seed_item):
    seed_item("MILK", "Milk 1L", "250.00")

    outcome = stock_service.receive_stock(store, "milk", 24, TODAY, _days(14))

    assert outcome.ok
    batch = outcome.value
    assert batch.id is not None
    assert batch.quantity_received == 24
    assert batch.quantity_remaining == 24
    assert batch.to_dict()["item_code"] == "MILK"


def test_receive_stock_validates_item_and_dates(store, seed_item):
    seed_item("MILK", "Milk 1L", "250.00")

    assert stock_service.receive_stock(store, "NOPE", 1, TODAY).failure.kind is ErrorKind.NOT_FOUND
    bad_expiry = stock_service.receive_stock(store, "MILK", 5, TODAY, _days(-1))
    assert bad_expiry.failure.kind is ErrorKind.INVALID_CONSTRUCTION
    assert stock_service.receive_stock(store, "MILK", 0, TODAY).failure.kind is ErrorKind.INVALID_CONSTRUCTION


def test_move_to_shelf_prefers_near_expiry_batch(store, seed_item, channel_quantity):
    seed_item("MILK", "Milk 1L", "250.00")
    stock_service.receive_stock(store, "MILK", 50, _days(-30), _days(200))
    near = stock_service.receive_stock(store, "MILK", 50, _days(-2), _days(10)).value

    outcome = stock_service.move_to_shelf(store, "MILK", 20, today=TODAY)

    assert outcome.ok, outcome.failure
    movement = outcome.value
    assert [(d.batch.id, d.quantity) for d in movement.draws] == [(near.id, 20)]
    assert movement.channel is Channel.SHELF
    assert movement.channel_quantity == 20
    assert channel_quantity("MILK", Channel.SHELF) == 20

    batches = {b.id: b.quantity_remaining for b in stock_service.list_batches(store, "MILK").value}
    assert batches[near.id] == 30
    assert sorted(batches.values()) == [30, 50]


def test_move_adds_to_existing_pool(store, seed_item, channel_quantity):
    seed_item("RICE", "Rice 5kg", "1200.00", website=3)
    stock_service.receive_stock(store, "RICE", 10, _days(-5))

    outcome = stock_service.move_to_website(store, "RICE", 4, today=TODAY)

    assert outcome.value.channel_quantity == 7
    assert channel_quantity("RICE", Channel.WEBSITE) == 7
    assert channel_quantity("RICE", Channel.SHELF) is None


def test_move_more_than_batches_hold_changes_nothing(store, seed_item, channel_quantity):
    seed_item("RICE", "Rice 5kg", "1200.00")
    stock_service.receive_stock(store, "RICE", 4, _days(-5))
    stock_service.receive_stock(store, "RICE", 3, _days(-1), _days(3))

    outcome = stock_service.move_stock(store, "RICE", 8, Channel.SHELF, today=TODAY)

    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_BATCH_STOCK
    assert outcome.failure.details["available_quantity"] == 7
    assert channel_quantity("RICE", Channel.SHELF) is None
    remaining = sorted(b.quantity_remaining for b in stock_service.list_batches(store, "RICE").value)
    assert remaining == [3, 4]


def test_move_rejects_unknown_item_and_bad_quantity(store, seed_item):
    seed_item("RICE", "Rice 5kg", "1200.00")
    assert stock_service.move_to_shelf(store, "NOPE", 1, today=TODAY).failure.kind is ErrorKind.NOT_FOUND
    assert stock_service.move_to_shelf(store, "RICE", 0, today=TODAY).failure.kind is ErrorKind.INVALID_CONSTRUCTION


def test_list_channel_stock(store, seed_item):
    seed_item("A1", "Rice 1kg", "100.00", shelf=5, website=2)
    seed_item("B7", "Tea 100g", "50.00", shelf=1)

    rows = stock_service.list_channel_stock(store, Channel.SHELF).value
    assert [(row.item.code, row.quantity) for row in rows] == [("A1", 5), ("B7", 1)]
    assert rows[0].to_dict()["item_name"] == "Rice 1kg"
