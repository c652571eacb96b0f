from datetime import date

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from outlet_pos.models import Bill
from outlet_pos.models.enums import Channel, PaymentMethod, TransactionType
from outlet_pos.money import Money
from outlet_pos.services import customer_service, sales_service
from outlet_pos.services.outcome import ErrorKind
from outlet_pos.services.repositories import BillRepository
from outlet_pos.services.sales_service import CartLine, SaleRequest
from outlet_pos.services.unit_of_work import run_in_transaction

BUSINESS_DAY = date(2026, 10, 19)


def _bill_count(store):
    return run_in_transaction(store, lambda session: session.query(Bill).count(), read_only=True)


def test_counter_sale_end_to_end(store, seed_item, channel_quantity, collaborators, printer):
    seed_item("A1", "Rice 1kg", "100.00", discount="10", shelf=5)

    outcome = sales_service.process_counter_sale(
        store,
        [CartLine("a1", 2)],
        cash_tendered=Money("200.00"),
        customer_name="Walk-in",
        **collaborators,
    )

    assert outcome.ok, outcome.failure
    receipt = outcome.value
    bill = receipt.bill
    assert receipt.printed
    assert bill.id is not None
    assert bill.serial_number == "20261019-000001"
    assert bill.transaction_type is TransactionType.COUNTER
    assert bill.payment_method is PaymentMethod.CASH
    assert bill.subtotal == Money("180.00")
    assert bill.total == Money("180.00")
    assert bill.change_amount == Money("20.00")
    assert [(line.item.code, line.quantity) for line in bill.items] == [("A1", 2)]

    assert channel_quantity("A1", Channel.SHELF) == 3
    assert printer.printed == [bill.serial_number]

    body = receipt.to_dict()
    assert body["bill"]["total"] == "180.00"
    assert body["bill"]["items"][0]["total_price"] == "180.00"


def test_serial_numbers_increase_per_sale(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", shelf=10)
    serials = []
    for _ in range(3):
        outcome = sales_service.process_counter_sale(
            store, [CartLine("A1", 1)], cash_tendered=Money("10.00"), **collaborators
        )
        serials.append(outcome.value.bill.serial_number)
    assert serials == ["20261019-000001", "20261019-000002", "20261019-000003"]


def test_online_sale_draws_from_website_pool(store, seed_item, channel_quantity, collaborators, gateway):
    seed_item("B7", "Tea 100g", "50.00", shelf=0, website=4)
    jane = customer_service.register_customer(store, name="Jane Silva", phone="0771234567").value

    outcome = sales_service.process_online_sale(
        store,
        [CartLine("B7", 3)],
        payment_method=PaymentMethod.CREDIT_CARD,
        customer_name="jane@example.com",
        customer_id=jane.id,
        **collaborators,
    )

    assert outcome.ok, outcome.failure
    bill = outcome.value.bill
    assert bill.transaction_type is TransactionType.ONLINE
    assert bill.cash_tendered is None
    assert bill.customer_id == jane.id
    assert bill.customer_name == "jane@example.com"
    assert channel_quantity("B7", Channel.WEBSITE) == 1
    assert channel_quantity("B7", Channel.SHELF) == 0
    assert gateway.transactions[0]["amount"] == "150.00"


def test_unknown_item_is_not_found(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "100.00", shelf=5)
    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 1), CartLine("ZZ", 1)], cash_tendered=Money("500"), **collaborators
    )
    assert outcome.failure.kind is ErrorKind.NOT_FOUND
    assert outcome.failure.details["item_code"] == "ZZ"
    assert _bill_count(store) == 0


def test_insufficient_shelf_stock_leaves_everything_unchanged(store, seed_item, channel_quantity, collaborators, printer):
    seed_item("A1", "Rice 1kg", "100.00", shelf=5, website=50)

    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 6)], cash_tendered=Money("1000"), **collaborators
    )

    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_STOCK
    assert "Rice 1kg" in outcome.failure.message
    assert outcome.failure.details["available_quantity"] == 5
    assert channel_quantity("A1", Channel.SHELF) == 5
    assert _bill_count(store) == 0
    assert printer.printed == []


def test_missing_channel_row_counts_as_no_stock(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "100.00")
    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 1)], cash_tendered=Money("100"), **collaborators
    )
    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_STOCK
    assert outcome.failure.details["available_quantity"] == 0


def test_repeated_codes_are_summed_for_availability(store, seed_item, channel_quantity, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", shelf=3)

    too_many = sales_service.process_counter_sale(
        store, [CartLine("A1", 2), CartLine("a1", 2)], cash_tendered=Money("100"), **collaborators
    )
    assert too_many.failure.kind is ErrorKind.INSUFFICIENT_STOCK
    assert too_many.failure.details["requested_quantity"] == 4

    ok = sales_service.process_counter_sale(
        store, [CartLine("A1", 2), CartLine("A1", 1)], cash_tendered=Money("30"), **collaborators
    )
    assert ok.ok
    assert len(ok.value.bill.items) == 2
    assert channel_quantity("A1", Channel.SHELF) == 0


def test_insufficient_cash_rolls_back(store, seed_item, channel_quantity, collaborators):
    seed_item("A1", "Rice 1kg", "100.00", discount="10", shelf=5)

    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 2)], cash_tendered=Money("179.99"), **collaborators
    )

    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_CASH
    assert channel_quantity("A1", Channel.SHELF) == 5
    assert _bill_count(store) == 0


def test_cash_sale_without_tendered_amount_is_insufficient_cash(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "1.00", shelf=5)
    request = SaleRequest(
        lines=[CartLine("A1", 1)],
        transaction_type=TransactionType.COUNTER,
        payment_method=PaymentMethod.CASH,
    )
    outcome = sales_service.process_sale(store, request, **collaborators)
    assert outcome.failure.kind is ErrorKind.INSUFFICIENT_CASH


def test_declined_payment_rolls_back(store, seed_item, channel_quantity, collaborators, gateway):
    seed_item("B7", "Tea 100g", "50.00", website=4)
    gateway.approve = False

    outcome = sales_service.process_online_sale(
        store, [CartLine("B7", 1)], payment_method=PaymentMethod.PAYPAL, **collaborators
    )

    assert outcome.failure.kind is ErrorKind.PAYMENT_DECLINED
    assert channel_quantity("B7", Channel.WEBSITE) == 4
    assert _bill_count(store) == 0


def test_manual_discount_above_subtotal_is_rejected(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", shelf=5)
    outcome = sales_service.process_counter_sale(
        store,
        [CartLine("A1", 1)],
        cash_tendered=Money("10.00"),
        discount=Money("10.01"),
        **collaborators,
    )
    assert outcome.failure.kind is ErrorKind.INVALID_CONSTRUCTION


def test_manual_discount_reduces_total_and_change(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "100.00", discount="10", shelf=5)
    outcome = sales_service.process_counter_sale(
        store,
        [CartLine("A1", 2)],
        cash_tendered=Money("200.00"),
        discount=Money("30.00"),
        **collaborators,
    )
    bill = outcome.value.bill
    assert bill.discount == Money("30.00")
    assert bill.total == Money("150.00")
    assert bill.change_amount == Money("50.00")


@pytest.mark.parametrize("lines", [[], [CartLine("A1", 0)], [CartLine("   ", 1)]])
def test_invalid_carts(store, seed_item, collaborators, lines):
    seed_item("A1", "Rice 1kg", "10.00", shelf=5)
    outcome = sales_service.process_counter_sale(store, lines, cash_tendered=Money("10"), **collaborators)
    assert outcome.failure.kind is ErrorKind.INVALID_CONSTRUCTION


def test_print_failure_is_reported_but_sale_stays_committed(
    store, seed_item, channel_quantity, collaborators, failing_printer
):
    seed_item("A1", "Rice 1kg", "10.00", shelf=5)
    collaborators["printer"] = failing_printer

    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 1)], cash_tendered=Money("10"), **collaborators
    )

    assert outcome.ok
    assert not outcome.value.printed
    assert outcome.value.print_error == "printer offline"
    assert channel_quantity("A1", Channel.SHELF) == 4
    assert _bill_count(store) == 1


def test_bill_keeps_price_at_time_of_sale(store, seed_item, collaborators):
    from outlet_pos.services import catalog_service

    seed_item("A1", "Rice 1kg", "100.00", shelf=5)
    sold = sales_service.process_counter_sale(
        store, [CartLine("A1", 1)], cash_tendered=Money("100"), **collaborators
    ).value.bill

    assert catalog_service.update_item(store, "A1", unit_price="150.00").ok

    reloaded = sales_service.get_bill(store, sold.id).value
    assert reloaded.items[0].unit_price == Money("100.00")
    assert reloaded.total == Money("100.00")
    assert sales_service.find_bill_by_serial(store, sold.serial_number).value.id == sold.id
    assert sales_service.get_bill(store, 9999).failure.kind is ErrorKind.NOT_FOUND


def test_list_bills_filters_by_day_and_type(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", shelf=5, website=5)
    sales_service.process_counter_sale(store, [CartLine("A1", 1)], cash_tendered=Money("10"), **collaborators)
    sales_service.process_online_sale(
        store, [CartLine("A1", 1)], payment_method=PaymentMethod.PAYPAL, **collaborators
    )

    assert len(sales_service.list_bills(store, BUSINESS_DAY).value) == 2
    assert len(sales_service.list_bills(store, BUSINESS_DAY, TransactionType.ONLINE).value) == 1
    assert sales_service.list_bills(store, date(2026, 10, 20)).value == []


def test_preview_prices_cart_without_side_effects(store, seed_item, channel_quantity):
    seed_item("A1", "Rice 1kg", "100.00", discount="10", shelf=1)
    seed_item("B7", "Tea 100g", "50.00")

    outcome = sales_service.preview_sale(
        store, [CartLine("A1", 2), CartLine("B7", 1)], discount=Money("5.00")
    )

    assert outcome.ok
    preview = outcome.value
    assert [line.item_code for line in preview.lines] == ["A1", "B7"]
    assert preview.subtotal == Money("230.00")
    assert preview.discount == Money("5.00")
    assert preview.total == Money("225.00")
    assert preview.to_dict()["lines"][0]["total_price"] == "180.00"
    assert channel_quantity("A1", Channel.SHELF) == 1
    assert _bill_count(store) == 0

    missing = sales_service.preview_sale(store, [CartLine("NOPE", 1)])
    assert missing.failure.kind is ErrorKind.NOT_FOUND


def test_unknown_customer_is_not_found(store, seed_item, channel_quantity, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", website=5)

    outcome = sales_service.process_online_sale(
        store, [CartLine("A1", 1)], payment_method=PaymentMethod.PAYPAL, customer_id=999, **collaborators
    )

    assert outcome.failure.kind is ErrorKind.NOT_FOUND
    assert outcome.failure.details == {"customer_id": 999}
    assert channel_quantity("A1", Channel.WEBSITE) == 5
    assert collaborators["payment_gateway"].transactions == []


def test_registered_customer_name_goes_on_the_bill(store, seed_item, collaborators):
    seed_item("A1", "Rice 1kg", "10.00", shelf=5)
    nimal = customer_service.register_customer(store, name="Nimal Perera", phone="0719876543").value

    request = SaleRequest(
        lines=[CartLine("A1", 1)],
        transaction_type=TransactionType.COUNTER,
        payment_method=PaymentMethod.CASH,
        customer_id=nimal.id,
        cash_tendered=Money("10.00"),
    )
    bill = sales_service.process_sale(store, request, **collaborators).value.bill

    assert bill.customer_id == nimal.id
    assert bill.customer_name == "Nimal Perera"


def test_retried_sale_charges_the_gateway_once(store, seed_item, channel_quantity, collaborators, gateway, monkeypatch):
    seed_item("B7", "Tea 100g", "50.00", website=4)
    monkeypatch.setattr("outlet_pos.services.concurrency.time.sleep", lambda _seconds: None)
    original_add = BillRepository.add
    calls = []

    def _locked_once(self, bill):
        calls.append(bill.serial_number)
        if len(calls) == 1:
            raise OperationalError("INSERT INTO bills", {}, Exception("database is locked"))
        return original_add(self, bill)

    monkeypatch.setattr(BillRepository, "add", _locked_once)

    outcome = sales_service.process_online_sale(
        store, [CartLine("B7", 2)], payment_method=PaymentMethod.CREDIT_CARD, **collaborators
    )

    assert outcome.ok, outcome.failure
    assert len(calls) == 2
    assert [tx["approved"] for tx in gateway.transactions] == [True]
    assert _bill_count(store) == 1
    assert channel_quantity("B7", Channel.WEBSITE) == 2
    # the first attempt's sequence number was rolled back with it
    assert outcome.value.bill.serial_number == "20261019-000001"


def test_persistence_failure_leaves_no_bill_and_stock_unchanged(
    store, seed_item, channel_quantity, collaborators, printer, monkeypatch
):
    seed_item("A1", "Rice 1kg", "100.00", shelf=5)

    def _disk_full(self, bill):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(BillRepository, "add", _disk_full)

    outcome = sales_service.process_counter_sale(
        store, [CartLine("A1", 2)], cash_tendered=Money("200.00"), **collaborators
    )

    assert outcome.failure.kind is ErrorKind.PERSISTENCE_FAILURE
    assert channel_quantity("A1", Channel.SHELF) == 5
    assert _bill_count(store) == 0
    assert printer.printed == []

    monkeypatch.undo()
    retry = sales_service.process_counter_sale(
        store, [CartLine("A1", 2)], cash_tendered=Money("200.00"), **collaborators
    )
    assert retry.value.bill.serial_number == "20261019-000001"
