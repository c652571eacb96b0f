# Overview: Payment gateway collaborator for non-cash sales.

"""
Payment Gateway

WHY: Card and PayPal sales need an external approval step before the bill is
persisted. Cash is settled at the counter and never reaches the gateway.

DESIGN:
- process_payment() returns True/False; False aborts the sale with PAYMENT_DECLINED
- `reference` is an idempotency key: the sale's unit of work may be retried
  after the gateway already approved it, and a repeated reference must not
  charge the customer again
- MockPaymentGateway stands in for a real provider (no network calls)
"""

from __future__ import annotations

import logging
import uuid

from ..models import PaymentMethod
from ..money import Money

logger = logging.getLogger(__name__)


class PaymentGateway:
    """Interface for payment providers."""

    def process_payment(
        self,
        amount: Money,
        method: PaymentMethod,
        details: str | None,
        reference: str | None = None,
    ) -> bool:
        raise NotImplementedError

    def verify_payment(self, transaction_id: str) -> bool:
        raise NotImplementedError


class MockPaymentGateway(PaymentGateway):
    """
    Approves every non-cash payment unless built with approve=False.

    Records each charge in `transactions` so callers and tests can inspect them.
    """

    def __init__(self, approve: bool = True):
        self.approve = approve
        self.transactions: list[dict] = []

    def _approved_charge(self, reference: str) -> dict | None:
        for tx in self.transactions:
            if tx["reference"] == reference and tx["approved"]:
                return tx
        return None

    def process_payment(
        self,
        amount: Money,
        method: PaymentMethod,
        details: str | None,
        reference: str | None = None,
    ) -> bool:
        method = PaymentMethod(method)
        if reference is not None and self._approved_charge(reference) is not None:
            logger.info("Payment %s already approved, not charging again", reference)
            return True

        approved = self.approve and method is not PaymentMethod.CASH
        self.transactions.append({
            "transaction_id": uuid.uuid4().hex,
            "reference": reference,
            "amount": amount.to_json(),
            "method": method.value,
            "details": details,
            "approved": approved,
        })
        logger.info(
            "Processing payment %s via %s: %s",
            amount.to_display_string(), method.display_name, "approved" if approved else "declined",
        )
        return approved

    def verify_payment(self, transaction_id: str) -> bool:
        return any(
            tx["transaction_id"] == transaction_id and tx["approved"]
            for tx in self.transactions
        )
