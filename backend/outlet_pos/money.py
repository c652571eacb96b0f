# Overview: Fixed-scale money value used by pricing, bills, and reports.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .validation import ValidationError

"""
Money invariants (authoritative)

- Amounts are Decimal quantized to 2 fractional digits, round-half-up.
- Rounding happens after EVERY operation, not only when formatting.
  apply_discount() rounds the discount amount before subtracting it.
- Equality and hashing are amount-based: Money("10.5") == Money("10.50").
- The currency is a fixed display label, never converted.
"""

CURRENCY = "Rs"
SCALE = 2

# Largest magnitude the Numeric(12, 2) money columns can hold
MAX_AMOUNT = Decimal("9999999999.99")
_QUANT = Decimal(1).scaleb(-SCALE)
_HUNDRED = Decimal(100)


def _to_decimal(value, *, field: str = "amount") -> Decimal:
    if value is None:
        raise ValidationError(f"{field} cannot be null")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, (float, str)):
        # floats go through their shortest repr, so 0.1 stays 0.1
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be numeric")
    else:
        raise ValidationError(f"{field} must be numeric")
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite")
    return result


def round2(value: Decimal) -> Decimal:
    try:
        return value.quantize(_QUANT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("amount is out of range")


@dataclass(frozen=True, order=True)
class Money:
    amount: Decimal

    def __post_init__(self):
        amount = round2(_to_decimal(self.amount))
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"amount cannot exceed {MAX_AMOUNT:,}")
        object.__setattr__(self, "amount", amount)

    @classmethod
    def of(cls, value) -> "Money":
        if isinstance(value, Money):
            return value
        return cls(value)

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal(0))

    @property
    def currency(self) -> str:
        return CURRENCY

    def add(self, other: "Money") -> "Money":
        return Money(self.amount + Money.of(other).amount)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.amount - Money.of(other).amount)

    def multiply(self, factor) -> "Money":
        """Multiply by an integer quantity or a decimal factor."""
        return Money(self.amount * _to_decimal(factor, field="factor"))

    def apply_discount(self, percentage) -> "Money":
        """
        Subtract `percentage` percent of this amount.

        The discount amount is rounded to 2 digits before it is subtracted.
        """
        pct = _to_decimal(percentage, field="discount percentage")
        discount_amount = round2(self.amount * pct / _HUNDRED)
        return Money(self.amount - discount_amount)

    def greater_than(self, other: "Money") -> bool:
        return self.amount > Money.of(other).amount

    def less_than(self, other: "Money") -> bool:
        return self.amount < Money.of(other).amount

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def __add__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __str__(self) -> str:
        return f"{CURRENCY} {self.amount}"

    def to_display_string(self) -> str:
        return f"{CURRENCY} {self.amount:,.2f}"

    def to_json(self) -> str:
        return str(self.amount)


def sum_money(values) -> Money:
    total = Money.zero()
    for value in values:
        total = total.add(value)
    return total
