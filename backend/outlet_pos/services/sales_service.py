"""
Sales Service - one-shot counter and online sales

WHY: A sale either happens completely (bill stored, channel stock
decremented, payment settled) or not at all. Everything between resolving
the cart and decrementing stock runs inside a single unit of work; printing
happens only after the commit.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from sqlalchemy.orm import Session

from ..models import Bill, BillItem, ChannelStock, Item, PaymentMethod, TransactionType
from ..models.catalog import normalize_item_code
from ..models.enums import Channel
from ..money import Money
from ..validation import ValidationError
from .bill_builder import BillBuilder, compute_totals
from .outcome import ErrorKind, Outcome
from .repositories import BillRepository, ChannelStockRepository, CustomerRepository, ItemRepository
from .unit_of_work import DataStore, transact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    item_code: str
    quantity: int


@dataclass(frozen=True)
class SaleRequest:
    lines: Sequence[CartLine]
    transaction_type: TransactionType
    payment_method: PaymentMethod
    customer_name: str | None = None
    customer_id: int | None = None
    cash_tendered: Money | None = None
    discount: Money | None = None


@dataclass(frozen=True)
class SaleReceipt:
    bill: Bill
    printed: bool
    print_error: str | None = None

    def to_dict(self) -> dict:
        return {
            "bill": self.bill.to_dict(),
            "printed": self.printed,
            "print_error": self.print_error,
        }


@dataclass(frozen=True)
class PreviewLine:
    item_code: str
    item_name: str
    quantity: int
    unit_price: Money
    discount_percent: Decimal
    total_price: Money

    def to_dict(self) -> dict:
        return {
            "item_code": self.item_code,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price.to_json(),
            "discount_percent": str(self.discount_percent),
            "total_price": self.total_price.to_json(),
        }


@dataclass(frozen=True)
class SalePreview:
    lines: List[PreviewLine]
    subtotal: Money
    discount: Money
    total: Money

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal.to_json(),
            "discount": self.discount.to_json(),
            "total": self.total.to_json(),
        }


def _resolve_lines(items: ItemRepository, lines: Sequence[CartLine]) -> Outcome[List[Tuple[Item, int]]]:
    if not lines:
        return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "Cart must contain at least one item")

    resolved: List[Tuple[Item, int]] = []
    for line in lines:
        try:
            code = normalize_item_code(line.item_code)
        except ValidationError as exc:
            return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, str(exc))

        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return Outcome.fail(
                ErrorKind.INVALID_CONSTRUCTION,
                "Quantity must be positive",
                item_code=code,
                quantity=quantity,
            )

        item = items.find_by_code(code)
        if item is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, f"Item not found: {code}", item_code=code)
        resolved.append((item, quantity))

    return Outcome.success(resolved)


def _lock_and_check_stock(
    stock: ChannelStockRepository,
    resolved: Sequence[Tuple[Item, int]],
    channel: Channel,
) -> Outcome[Dict[int, ChannelStock]]:
    requested: Dict[int, int] = {}
    items_by_id: Dict[int, Item] = {}
    for item, quantity in resolved:
        requested[item.id] = requested.get(item.id, 0) + quantity
        items_by_id[item.id] = item

    pools: Dict[int, ChannelStock] = {}
    # Lock in id order so concurrent carts cannot deadlock on each other.
    for item_id in sorted(requested):
        item = items_by_id[item_id]
        pool = stock.get(item_id, channel, lock=True)
        available = pool.quantity if pool is not None else 0
        if available < requested[item_id]:
            return Outcome.fail(
                ErrorKind.INSUFFICIENT_STOCK,
                f"Insufficient stock for item: {item.name}",
                item_code=item.code,
                item_name=item.name,
                channel=channel.value,
                requested_quantity=requested[item_id],
                available_quantity=available,
            )
        pools[item_id] = pool

    return Outcome.success(pools)


def _settle_payment(bill: Bill, payment_method: PaymentMethod, payment_gateway, reference: str) -> Outcome[Bill]:
    if payment_method is PaymentMethod.CASH:
        if bill.cash_tendered is None or bill.cash_tendered.less_than(bill.total):
            return Outcome.fail(
                ErrorKind.INSUFFICIENT_CASH,
                "Insufficient cash tendered",
                total=bill.total.to_json(),
                cash_tendered=bill.cash_tendered.to_json() if bill.cash_tendered is not None else None,
            )
        return Outcome.success(bill)

    approved = payment_gateway.process_payment(
        bill.total, payment_method, bill.customer_name, reference=reference
    )
    if not approved:
        return Outcome.fail(
            ErrorKind.PAYMENT_DECLINED,
            "Payment processing failed",
            payment_method=payment_method.value,
            total=bill.total.to_json(),
        )
    return Outcome.success(bill)


def _print_bill(printer, bill: Bill) -> SaleReceipt:
    if printer is None:
        return SaleReceipt(bill=bill, printed=False)
    try:
        printer.print(bill)
    except Exception as exc:
        # The sale is already committed; report instead of failing it.
        logger.exception("Failed to print bill %s", bill.serial_number)
        return SaleReceipt(bill=bill, printed=False, print_error=str(exc))
    return SaleReceipt(bill=bill, printed=True)


def process_sale(
    store: DataStore,
    request: SaleRequest,
    *,
    serial_generator,
    payment_gateway,
    printer=None,
    now: datetime | None = None,
) -> Outcome[SaleReceipt]:
    """
    Sell the cart in `request` from the channel its transaction type maps to.

    Returns the committed bill wrapped in a SaleReceipt, or the failure that
    rolled the sale back. Never raises for business failures.
    """
    transaction_type = TransactionType(request.transaction_type)
    payment_method = PaymentMethod(request.payment_method)
    channel = transaction_type.channel
    # Stable across retries of the unit below, so the gateway charges at most once
    payment_reference = uuid.uuid4().hex

    def _op(session: Session) -> Outcome[Bill]:
        bills = BillRepository(session)

        resolved = _resolve_lines(ItemRepository(session), request.lines)
        if not resolved.ok:
            return resolved

        customer_name = request.customer_name
        if request.customer_id is not None:
            customer = CustomerRepository(session).get(request.customer_id)
            if customer is None:
                return Outcome.fail(
                    ErrorKind.NOT_FOUND, "Customer not found", customer_id=request.customer_id
                )
            customer_name = customer_name or customer.name

        pools = _lock_and_check_stock(ChannelStockRepository(session), resolved.value, channel)
        if not pools.ok:
            return pools

        discount = Money.of(request.discount) if request.discount is not None else None
        bill_items = [BillItem.for_item(item, quantity) for item, quantity in resolved.value]
        subtotal = compute_totals(bill_items).subtotal
        if discount is not None and discount.greater_than(subtotal):
            return Outcome.fail(
                ErrorKind.INVALID_CONSTRUCTION,
                "Discount cannot exceed subtotal",
                discount=discount.to_json(),
                subtotal=subtotal.to_json(),
            )

        serial_number = serial_generator.generate(bills.next_sequence_number())
        builder = (
            BillBuilder()
            .serial_number(serial_number)
            .issued_at(now)
            .transaction_type(transaction_type)
            .customer_id(request.customer_id)
            .customer_name(customer_name)
            .items(bill_items)
            .payment_method(payment_method)
            .discount(discount)
        )
        if payment_method is PaymentMethod.CASH:
            builder.cash_tendered(request.cash_tendered)

        built = builder.build()
        if not built.ok:
            return built
        bill = built.value

        paid = _settle_payment(bill, payment_method, payment_gateway, payment_reference)
        if not paid.ok:
            return paid

        bills.add(bill)
        for bill_item in bill.items:
            pools.value[bill_item.item.id].reduce_stock(bill_item.quantity)
        session.flush()
        return Outcome.success(bill)

    outcome = transact(store, _op, immediate=True)
    if not outcome.ok:
        logger.warning(
            "Sale aborted (%s): %s", outcome.failure.kind.value, outcome.failure.message
        )
        return Outcome.from_failure(outcome.failure)

    bill = outcome.value
    logger.info(
        "Processed %s sale %s from %s, total %s",
        transaction_type.value, bill.serial_number, channel.value, bill.total,
    )
    return Outcome.success(_print_bill(printer, bill))


def process_counter_sale(
    store: DataStore,
    lines: Sequence[CartLine],
    *,
    cash_tendered: Money,
    customer_name: str | None = None,
    discount: Money | None = None,
    **collaborators,
) -> Outcome[SaleReceipt]:
    """Cash sale at the counter, served from the shelf."""
    request = SaleRequest(
        lines=lines,
        transaction_type=TransactionType.COUNTER,
        payment_method=PaymentMethod.CASH,
        customer_name=customer_name,
        cash_tendered=cash_tendered,
        discount=discount,
    )
    return process_sale(store, request, **collaborators)


def process_online_sale(
    store: DataStore,
    lines: Sequence[CartLine],
    *,
    payment_method: PaymentMethod,
    customer_name: str | None = None,
    customer_id: int | None = None,
    discount: Money | None = None,
    **collaborators,
) -> Outcome[SaleReceipt]:
    """Website order, served from the website pool."""
    request = SaleRequest(
        lines=lines,
        transaction_type=TransactionType.ONLINE,
        payment_method=payment_method,
        customer_name=customer_name,
        customer_id=customer_id,
        discount=discount,
    )
    return process_sale(store, request, **collaborators)


def preview_sale(
    store: DataStore,
    lines: Sequence[CartLine],
    *,
    discount: Money | None = None,
) -> Outcome[SalePreview]:
    """Price a cart without checking stock, taking payment, or storing anything."""
    def _op(session: Session) -> Outcome[SalePreview]:
        resolved = _resolve_lines(ItemRepository(session), lines)
        if not resolved.ok:
            return resolved

        preview_lines = []
        bill_items = []
        for item, quantity in resolved.value:
            bill_item = BillItem.for_item(item, quantity)
            bill_items.append(bill_item)
            preview_lines.append(PreviewLine(
                item_code=item.code,
                item_name=item.name,
                quantity=quantity,
                unit_price=bill_item.unit_price,
                discount_percent=bill_item.discount_percent,
                total_price=bill_item.total_price,
            ))

        if discount is not None and Money.of(discount).is_negative():
            return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "Discount cannot be negative")
        totals = compute_totals(bill_items, discount)
        return Outcome.success(SalePreview(
            lines=preview_lines,
            subtotal=totals.subtotal,
            discount=totals.discount,
            total=totals.total,
        ))

    return transact(store, _op, read_only=True)


def get_bill(store: DataStore, bill_id: int) -> Outcome[Bill]:
    def _op(session: Session) -> Outcome[Bill]:
        bill = BillRepository(session).get(bill_id)
        if bill is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Bill not found", bill_id=bill_id)
        return Outcome.success(bill)

    return transact(store, _op, read_only=True)


def find_bill_by_serial(store: DataStore, serial_number: str) -> Outcome[Bill]:
    def _op(session: Session) -> Outcome[Bill]:
        bill = BillRepository(session).find_by_serial(serial_number)
        if bill is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Bill not found", serial_number=serial_number)
        return Outcome.success(bill)

    return transact(store, _op, read_only=True)


def list_bills(store: DataStore, day: date, transaction_type: TransactionType | None = None) -> Outcome[List[Bill]]:
    return transact(
        store,
        lambda session: Outcome.success(BillRepository(session).list_for_date(day, transaction_type)),
        read_only=True,
    )
