from __future__ import annotations

import enum


class Channel(str, enum.Enum):
    """Independent stock pools an item can be sold from."""
    SHELF = "SHELF"
    WEBSITE = "WEBSITE"


class TransactionType(str, enum.Enum):
    COUNTER = "COUNTER"
    ONLINE = "ONLINE"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def channel(self) -> Channel:
        # Counter sales draw from the shelf, online sales from the website pool
        if self is TransactionType.COUNTER:
            return Channel.SHELF
        return Channel.WEBSITE


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    PAYPAL = "PAYPAL"

    @property
    def display_name(self) -> str:
        return _PAYMENT_DISPLAY[self]


_PAYMENT_DISPLAY = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.CREDIT_CARD: "Credit Card",
    PaymentMethod.PAYPAL: "PayPal",
}
