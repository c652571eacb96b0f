# Overview: Service-layer operations for reporting; read-only views over bills and stock.

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from ..models.enums import Channel, TransactionType
from ..money import Money, sum_money
from ..time_utils import to_iso_date, today as current_date
from .outcome import ErrorKind, Outcome
from .repositories import BillRepository, ChannelStockRepository, StockBatchRepository
from .unit_of_work import DataStore, transact


def daily_sales_report(
    store: DataStore,
    *,
    day: date,
    transaction_type: TransactionType | None = None,
) -> Outcome[dict]:
    """
    Revenue for one day, optionally for one transaction type.

    Items are summarised by code: units sold and the revenue of their lines
    (line totals, before any bill-level manual discount).
    """
    transaction_type = TransactionType(transaction_type) if transaction_type is not None else None

    def _op(session: Session) -> Outcome[dict]:
        bills = BillRepository(session).list_for_date(day, transaction_type)

        summaries: dict[str, dict] = {}
        for bill in bills:
            for bill_item in bill.items:
                entry = summaries.setdefault(bill_item.item.code, {
                    "item_code": bill_item.item.code,
                    "item_name": bill_item.item.name,
                    "quantity": 0,
                    "revenue": Money.zero(),
                })
                entry["quantity"] += bill_item.quantity
                entry["revenue"] = entry["revenue"] + bill_item.total_price

        items = [
            {**entry, "revenue": entry["revenue"].to_json()}
            for entry in sorted(summaries.values(), key=lambda e: e["item_code"])
        ]
        return Outcome.success({
            "date": to_iso_date(day),
            "transaction_type": transaction_type.value if transaction_type else None,
            "bill_count": len(bills),
            "total_revenue": sum_money(bill.total for bill in bills).to_json(),
            "items": items,
        })

    return transact(store, _op, read_only=True)


def reorder_report(store: DataStore, *, channel: Channel = Channel.SHELF) -> Outcome[dict]:
    """Channel rows whose quantity has fallen below the item's reorder level."""
    channel = Channel(channel)

    def _op(session: Session) -> Outcome[dict]:
        rows = ChannelStockRepository(session).list_below_reorder_level(channel)
        return Outcome.success({
            "channel": channel.value,
            "items": [
                {
                    "item_code": row.item.code,
                    "item_name": row.item.name,
                    "quantity": row.quantity,
                    "reorder_level": row.item.reorder_level,
                    "shortfall": row.item.reorder_level - row.quantity,
                }
                for row in rows
            ],
        })

    return transact(store, _op, read_only=True)


def stock_report(store: DataStore, *, as_of: date | None = None) -> Outcome[dict]:
    """Every batch with what is left of it and how close it is to expiry."""
    as_of = as_of or current_date()

    def _op(session: Session) -> Outcome[dict]:
        batches = StockBatchRepository(session).list_all()
        rows = []
        for batch in batches:
            row = batch.to_dict()
            row["item_name"] = batch.item.name
            row["expired"] = batch.is_expired(as_of)
            row["days_until_expiry"] = batch.days_until_expiry(as_of)
            rows.append(row)
        return Outcome.success({
            "as_of": to_iso_date(as_of),
            "total_remaining": sum(batch.quantity_remaining for batch in batches),
            "batches": rows,
        })

    return transact(store, _op, read_only=True)


def bill_report(store: DataStore, *, start: date | None = None, end: date | None = None) -> Outcome[dict]:
    """Bills issued between two dates, both inclusive. Without a range every bill is listed."""
    if (start is None) != (end is None):
        return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "Both start and end dates are required")
    if start is not None and end < start:
        return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "End date cannot be before start date")

    def _op(session: Session) -> Outcome[dict]:
        if start is None:
            lower, upper = datetime.min, datetime.max
        else:
            lower = datetime.combine(start, time.min)
            upper = datetime.combine(end + timedelta(days=1), time.min)
        bills = BillRepository(session).list_between(lower, upper)
        return Outcome.success({
            "start": to_iso_date(start),
            "end": to_iso_date(end),
            "bill_count": len(bills),
            "total_revenue": sum_money(bill.total for bill in bills).to_json(),
            "bills": [bill.to_dict() for bill in bills],
        })

    return transact(store, _op, read_only=True)
