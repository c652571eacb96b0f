# Overview: Staged, side-effect-free construction of Bill aggregates.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from ..models import Bill, BillItem, PaymentMethod, TransactionType
from ..money import Money, sum_money
from ..time_utils import utcnow
from ..validation import ValidationError
from .outcome import ErrorKind, Outcome


@dataclass(frozen=True)
class BillTotals:
    subtotal: Money
    discount: Money
    total: Money
    change: Optional[Money] = None


def compute_totals(
    items: Iterable[BillItem],
    discount: Money | None = None,
    cash_tendered: Money | None = None,
) -> BillTotals:
    """
    subtotal = sum of line totals, total = subtotal - discount (not clamped),
    change = cash_tendered - total when cash was tendered.
    """
    subtotal = sum_money(bill_item.total_price for bill_item in items)
    discount = Money.of(discount) if discount is not None else Money.zero()
    total = subtotal.subtract(discount)
    change = cash_tendered.subtract(total) if cash_tendered is not None else None
    return BillTotals(subtotal=subtotal, discount=discount, total=total, change=change)


def _invalid(message: str, **details) -> Outcome[Bill]:
    return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, message, **details)


class BillBuilder:
    """
    Collects bill fields and validates them in build().

    build() never touches a session: it returns Outcome.success(bill) with a
    transient Bill, or an INVALID_CONSTRUCTION failure.
    """

    def __init__(self):
        self._serial_number: str | None = None
        self._issued_at: datetime | None = None
        self._transaction_type: TransactionType | None = None
        self._customer_id: int | None = None
        self._customer_name: str | None = None
        self._items: List[BillItem] = []
        self._payment_method: PaymentMethod | None = None
        self._cash_tendered: Money | None = None
        self._discount: Money | None = None

    def serial_number(self, value: str | None) -> "BillBuilder":
        self._serial_number = value
        return self

    def issued_at(self, value: datetime | None) -> "BillBuilder":
        self._issued_at = value
        return self

    def transaction_type(self, value) -> "BillBuilder":
        self._transaction_type = TransactionType(value) if value is not None else None
        return self

    def customer_id(self, value: int | None) -> "BillBuilder":
        self._customer_id = value
        return self

    def customer_name(self, value: str | None) -> "BillBuilder":
        self._customer_name = value
        return self

    def add_item(self, bill_item: BillItem) -> "BillBuilder":
        if bill_item is None:
            raise ValidationError("Bill item cannot be null")
        self._items.append(bill_item)
        return self

    def items(self, bill_items: Iterable[BillItem]) -> "BillBuilder":
        self._items = []
        for bill_item in bill_items:
            self.add_item(bill_item)
        return self

    def payment_method(self, value) -> "BillBuilder":
        self._payment_method = PaymentMethod(value) if value is not None else None
        return self

    def cash_tendered(self, value) -> "BillBuilder":
        self._cash_tendered = Money.of(value) if value is not None else None
        return self

    def discount(self, value) -> "BillBuilder":
        self._discount = Money.of(value) if value is not None else None
        return self

    def build(self) -> Outcome[Bill]:
        if not self._serial_number:
            return _invalid("Serial number is required")
        if self._transaction_type is None:
            return _invalid("Transaction type is required")
        if not self._items:
            return _invalid("Bill must have at least one item")
        if self._discount is not None and self._discount.is_negative():
            return _invalid("Discount cannot be negative", discount=self._discount.to_json())

        totals = compute_totals(self._items, self._discount, self._cash_tendered)
        bill = Bill(
            serial_number=self._serial_number,
            issued_at=self._issued_at or utcnow(),
            transaction_type=self._transaction_type,
            customer_id=self._customer_id,
            customer_name=self._customer_name,
            payment_method=self._payment_method,
            subtotal_amount=totals.subtotal.amount,
            discount_amount=totals.discount.amount,
            total_amount=totals.total.amount,
            cash_tendered_amount=self._cash_tendered.amount if self._cash_tendered is not None else None,
            change_amount_value=totals.change.amount if totals.change is not None else None,
            items=list(self._items),
        )
        return Outcome.success(bill)
