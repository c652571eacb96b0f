from datetime import date, timedelta
from decimal import Decimal

import pytest

from outlet_pos.models import Item, StockBatch
from outlet_pos.services.allocation import drain_batches, select_batches
from outlet_pos.services.outcome import ErrorKind

TODAY = date(2026, 10, 19)


@pytest.fixture
def item():
    return Item(code="MILK", name="Milk 1L", unit_price=Decimal("250.00"))


def batch(item, batch_id, quantity, purchased_days_ago, expires_in_days=None):
    b = StockBatch(
        item=item,
        quantity_received=quantity,
        purchase_date=TODAY - timedelta(days=purchased_days_ago),
        expiry_date=TODAY + timedelta(days=expires_in_days) if expires_in_days is not None else None,
    )
    b.id = batch_id
    return b


def test_near_expiry_batch_goes_first_even_if_newer(item):
    old_far = batch(item, 1, 50, purchased_days_ago=30, expires_in_days=200)
    new_near = batch(item, 2, 50, purchased_days_ago=2, expires_in_days=10)

    outcome = select_batches([old_far, new_near], 20, today=TODAY)

    assert outcome.ok
    assert outcome.value == [new_near]
    draws = drain_batches(outcome.value, 20)
    assert [(d.batch.id, d.quantity) for d in draws] == [(2, 20)]
    assert new_near.quantity_remaining == 30
    assert old_far.quantity_remaining == 50


def test_oldest_purchase_wins_when_nothing_is_near_expiry(item):
    # purchased on days 1 and 10, expiring on days 90 and 95; today is day 10
    b1 = batch(item, 1, 50, purchased_days_ago=9, expires_in_days=80)
    b2 = batch(item, 2, 50, purchased_days_ago=0, expires_in_days=85)

    outcome = select_batches([b2, b1], 20, today=TODAY)

    assert outcome.ok
    assert outcome.value == [b1]
    draws = drain_batches(outcome.value, 20)
    assert [(d.batch.id, d.quantity) for d in draws] == [(1, 20)]
    assert b2.quantity_remaining == 50


def test_falls_back_to_oldest_non_perishable_then_far_expiry(item):
    no_expiry_new = batch(item, 1, 5, purchased_days_ago=1)
    no_expiry_old = batch(item, 2, 5, purchased_days_ago=10)
    far_expiry = batch(item, 3, 20, purchased_days_ago=20, expires_in_days=90)

    outcome = select_batches([no_expiry_new, far_expiry, no_expiry_old], 12, today=TODAY)

    assert outcome.ok
    assert outcome.value == [no_expiry_old, no_expiry_new, far_expiry]
    draws = drain_batches(outcome.value, 12)
    assert [(d.batch.id, d.quantity) for d in draws] == [(2, 5), (1, 5), (3, 2)]
    assert far_expiry.quantity_remaining == 18


def test_near_expiry_batches_drain_in_expiry_order_before_anything_else(item):
    expires_5 = batch(item, 1, 3, purchased_days_ago=3, expires_in_days=5)
    expires_2 = batch(item, 2, 3, purchased_days_ago=1, expires_in_days=2)
    no_expiry = batch(item, 3, 10, purchased_days_ago=40)

    outcome = select_batches([expires_5, no_expiry, expires_2], 8, today=TODAY)

    assert outcome.value == [expires_2, expires_5, no_expiry]
    draws = drain_batches(outcome.value, 8)
    assert [d.quantity for d in draws] == [3, 3, 2]


def test_expiry_exactly_on_threshold_is_not_near_expiry(item):
    on_threshold = batch(item, 1, 10, purchased_days_ago=1, expires_in_days=30)
    no_expiry = batch(item, 2, 10, purchased_days_ago=5)

    outcome = select_batches([on_threshold, no_expiry], 5, today=TODAY)
    assert outcome.value == [no_expiry]

    just_inside = batch(item, 3, 10, purchased_days_ago=1, expires_in_days=29)
    outcome = select_batches([just_inside, no_expiry], 5, today=TODAY)
    assert outcome.value == [just_inside]


def test_window_is_configurable(item):
    expires_in_40 = batch(item, 1, 10, purchased_days_ago=1, expires_in_days=40)
    no_expiry = batch(item, 2, 10, purchased_days_ago=5)

    outcome = select_batches([expires_in_40, no_expiry], 5, today=TODAY, near_expiry_days=45)
    assert outcome.value == [expires_in_40]


def test_empty_batches_are_ignored_and_shortfall_is_reported(item):
    empty = batch(item, 1, 10, purchased_days_ago=9, expires_in_days=3)
    empty.reduce_stock(10)
    partial = batch(item, 2, 4, purchased_days_ago=2)

    outcome = select_batches([empty, partial], 5, today=TODAY)

    assert not outcome.ok
    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_BATCH_STOCK
    assert outcome.failure.details == {"requested_quantity": 5, "available_quantity": 4}
    assert partial.quantity_remaining == 4
