# Overview: Receipt formatting and printing (console plus a durable text record).

from __future__ import annotations

from pathlib import Path
from typing import Callable

import click

from ..models import Bill

WIDTH = 49
RULE = "=" * WIDTH
THIN_RULE = "-" * WIDTH


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _total_row(label: str, money) -> str:
    return f"{label:<32} {money.to_display_string():>16}"


class ConsoleBillPrinter:
    """
    Prints bills after the sale has been committed.

    Printing is not part of the sale's transaction: a failure here is reported
    by the sales service, the sale stays committed.
    """

    def __init__(
        self,
        store_name: str = "OUTLET STORE",
        store_location: str | None = None,
        archive_dir: str | Path | None = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self.store_name = store_name
        self.store_location = store_location
        self.archive_dir = Path(archive_dir) if archive_dir else None
        self.echo = echo

    def format(self, bill: Bill) -> str:
        lines = [RULE, self.store_name.center(WIDTH).rstrip()]
        if self.store_location:
            lines.append(self.store_location.center(WIDTH).rstrip())
        lines.append(RULE)
        lines.append(f"Bill Serial No: {bill.serial_number}")
        lines.append(f"Date: {bill.issued_at:%Y-%m-%d %H:%M:%S}")
        lines.append(f"Transaction Type: {bill.transaction_type.display_name}")
        if bill.customer_name:
            lines.append(f"Customer: {bill.customer_name}")
        lines.append(THIN_RULE)
        lines.append(f"{'Item':<20} {'Qty':>5} {'Price':>10} {'Total':>11}")
        lines.append(THIN_RULE)
        for bill_item in bill.items:
            lines.append(
                f"{_truncate(bill_item.item.name, 20):<20} {bill_item.quantity:>5} "
                f"{bill_item.unit_price.amount:>10,.2f} {bill_item.total_price.amount:>11,.2f}"
            )
        lines.append(THIN_RULE)
        lines.append(_total_row("Subtotal:", bill.subtotal))
        if not bill.discount.is_zero():
            lines.append(_total_row("Discount:", bill.discount))
        lines.append(_total_row("TOTAL:", bill.total))
        if bill.payment_method is not None:
            lines.append(f"Payment Method: {bill.payment_method.display_name}")
        if bill.cash_tendered is not None:
            lines.append(_total_row("Cash Tendered:", bill.cash_tendered))
            lines.append(_total_row("Change:", bill.change_amount))
        lines.append(RULE)
        lines.append("Thank you for shopping with us!".center(WIDTH).rstrip())
        lines.append(RULE)
        return "\n".join(lines) + "\n"

    def print(self, bill: Bill) -> None:
        text = self.format(bill)
        self.echo(text)
        if self.archive_dir is not None:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            (self.archive_dir / f"{bill.serial_number}.txt").write_text(text, encoding="utf-8")
