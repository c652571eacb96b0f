import unittest
from datetime import datetime
from decimal import Decimal

from outlet_pos.models import BillItem, Item
from outlet_pos.models.enums import PaymentMethod, TransactionType
from outlet_pos.money import Money
from outlet_pos.services.bill_builder import BillBuilder, compute_totals
from outlet_pos.services.outcome import ErrorKind


def _line(code="A1", price="100.00", discount="10", quantity=2):
    item = Item(code=code, name=f"Item {code}", unit_price=Decimal(price), discount_percent=Decimal(discount))
    return BillItem.for_item(item, quantity)


class BillBuilderTests(unittest.TestCase):
    def setUp(self):
        self.builder = (
            BillBuilder()
            .serial_number("20261019-000001")
            .issued_at(datetime(2026, 10, 19, 9, 0))
            .transaction_type(TransactionType.COUNTER)
            .payment_method(PaymentMethod.CASH)
        )

    def test_builds_counter_bill_with_change(self):
        outcome = self.builder.add_item(_line()).cash_tendered(Money("200.00")).build()

        self.assertTrue(outcome.ok)
        bill = outcome.value
        self.assertEqual(bill.subtotal, Money("180.00"))
        self.assertEqual(bill.discount, Money.zero())
        self.assertEqual(bill.total, Money("180.00"))
        self.assertEqual(bill.change_amount, Money("20.00"))
        self.assertEqual(bill.serial_number, "20261019-000001")
        self.assertIsNone(bill.id)

    def test_manual_discount_is_taken_off_the_subtotal(self):
        outcome = (
            self.builder
            .items([_line(), _line(code="B2", price="50.00", discount="0", quantity=1)])
            .discount(Money("30.00"))
            .build()
        )
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.value.subtotal, Money("230.00"))
        self.assertEqual(outcome.value.total, Money("200.00"))
        self.assertIsNone(outcome.value.change_amount)
        self.assertEqual([line.line_number for line in outcome.value.items], [1, 2])

    def test_missing_serial_number_is_invalid(self):
        outcome = BillBuilder().transaction_type(TransactionType.ONLINE).add_item(_line()).build()
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.failure.kind, ErrorKind.INVALID_CONSTRUCTION)

    def test_missing_transaction_type_is_invalid(self):
        outcome = BillBuilder().serial_number("S-1").add_item(_line()).build()
        self.assertEqual(outcome.failure.kind, ErrorKind.INVALID_CONSTRUCTION)

    def test_empty_item_list_is_invalid(self):
        outcome = self.builder.build()
        self.assertEqual(outcome.failure.kind, ErrorKind.INVALID_CONSTRUCTION)
        self.assertIn("at least one item", outcome.failure.message)

    def test_negative_discount_is_invalid(self):
        outcome = self.builder.add_item(_line()).discount(Money("-1.00")).build()
        self.assertEqual(outcome.failure.kind, ErrorKind.INVALID_CONSTRUCTION)

    def test_discount_above_subtotal_is_not_clamped(self):
        totals = compute_totals([_line(quantity=1)], Money("100.00"))
        self.assertEqual(totals.subtotal, Money("90.00"))
        self.assertEqual(totals.total, Money("-10.00"))


if __name__ == "__main__":
    unittest.main()
