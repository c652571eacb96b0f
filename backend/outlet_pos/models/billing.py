from __future__ import annotations

from sqlalchemy.orm import reconstructor, validates

from ..extensions import db
from ..money import Money
from ..time_utils import to_utc_z, utcnow
from ..validation import ValidationError
from .enums import PaymentMethod, TransactionType


class BillConstructionError(ValidationError):
    """Raised when a bill is built without required fields or modified after it was built."""


def _money_or_none(amount) -> Money | None:
    return Money(amount) if amount is not None else None


class Bill(db.Model):
    """
    Finalized invoice for one sale.

    WHY immutable: a bill is a financial record. Its totals are computed once by
    services/bill_builder.py and every field is frozen when the constructor
    returns. The only late-bound field is `id`, assigned by the store on flush.

    DERIVED (computed by the builder, stored as snapshots):
    - subtotal = sum(BillItem.total_price)
    - total = subtotal - discount        (not clamped)
    - change_amount = cash_tendered - total   (only when cash was tendered)
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("serial_number", name="uq_bills_serial_number"),
        db.Index("ix_bills_type_issued", "transaction_type", "issued_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable serial (e.g., "20261019-000042")
    serial_number = db.Column(db.String(64), nullable=False)
    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    transaction_type = db.Column(db.Enum(TransactionType, native_enum=False, length=16), nullable=False)

    # Customer identity is optional (walk-in counter sales)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", name="fk_bills_customer_id"),
        nullable=True,
        index=True,
    )
    customer_name = db.Column(db.String(255), nullable=True)

    payment_method = db.Column(db.Enum(PaymentMethod, native_enum=False, length=32), nullable=True)

    subtotal_amount = db.Column("subtotal", db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column("discount", db.Numeric(12, 2), nullable=False)
    total_amount = db.Column("total", db.Numeric(12, 2), nullable=False)
    cash_tendered_amount = db.Column("cash_tendered", db.Numeric(12, 2), nullable=True)
    change_amount_value = db.Column("change_amount", db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    items = db.relationship(
        "BillItem",
        back_populates="bill",
        order_by="BillItem.line_number",
        cascade="all, delete-orphan",
    )

    _built = False

    def __init__(self, **kwargs):
        items = list(kwargs.pop("items", []))
        for line_number, bill_item in enumerate(items, start=1):
            bill_item.line_number = line_number
        super().__init__(items=items, **kwargs)
        self._built = True

    @reconstructor
    def _on_load(self):
        self._built = True

    @validates(
        "serial_number",
        "issued_at",
        "transaction_type",
        "customer_id",
        "customer_name",
        "payment_method",
        "subtotal_amount",
        "discount_amount",
        "total_amount",
        "cash_tendered_amount",
        "change_amount_value",
    )
    def _freeze_fields(self, key, value):
        if self._built:
            raise BillConstructionError(f"Bill is immutable once built (cannot set {key})")
        return value

    @validates("items")
    def _freeze_items(self, key, bill_item):
        if self._built:
            raise BillConstructionError("Cannot add items to a built bill")
        return bill_item

    @property
    def subtotal(self) -> Money:
        return Money(self.subtotal_amount)

    @property
    def discount(self) -> Money:
        return Money(self.discount_amount)

    @property
    def total(self) -> Money:
        return Money(self.total_amount)

    @property
    def cash_tendered(self) -> Money | None:
        return _money_or_none(self.cash_tendered_amount)

    @property
    def change_amount(self) -> Money | None:
        return _money_or_none(self.change_amount_value)

    def __repr__(self) -> str:
        return f"<Bill id={self.id} serial={self.serial_number!r} total={self.total}>"

    def to_dict(self) -> dict:
        cash = self.cash_tendered
        change = self.change_amount
        return {
            "id": self.id,
            "serial_number": self.serial_number,
            "issued_at": to_utc_z(self.issued_at),
            "transaction_type": self.transaction_type.value,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "subtotal": self.subtotal.to_json(),
            "discount": self.discount.to_json(),
            "total": self.total.to_json(),
            "cash_tendered": cash.to_json() if cash is not None else None,
            "change_amount": change.to_json() if change is not None else None,
            "items": [bill_item.to_dict() for bill_item in self.items],
        }


class BillItem(db.Model):
    """
    Priced snapshot of one cart line.

    unit_price and discount_percent are copied from the Item at sale time and
    total_price is computed once, so later catalog changes never alter
    historical bills.
    """
    __tablename__ = "bill_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_bill_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False, default=1)

    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_amount = db.Column("unit_price", db.Numeric(12, 2), nullable=False)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False)
    total_price_amount = db.Column("total_price", db.Numeric(12, 2), nullable=False)

    bill = db.relationship("Bill", back_populates="items")
    item = db.relationship("Item")

    _built = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._built = True

    @reconstructor
    def _on_load(self):
        self._built = True

    @classmethod
    def for_item(cls, item, quantity: int) -> "BillItem":
        """Price `quantity` units of `item` at its current price and discount."""
        if item is None:
            raise BillConstructionError("Item cannot be null")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise BillConstructionError("Quantity must be positive")
        return cls(
            item=item,
            quantity=quantity,
            unit_price_amount=item.unit_price.amount,
            discount_percent=item.discount_percent,
            total_price_amount=item.calculate_total_price(quantity).amount,
        )

    @validates("item", "quantity", "unit_price_amount", "discount_percent", "total_price_amount")
    def _freeze_fields(self, key, value):
        if self._built:
            raise BillConstructionError(f"Bill item is immutable once built (cannot set {key})")
        return value

    @property
    def unit_price(self) -> Money:
        return Money(self.unit_price_amount)

    @property
    def total_price(self) -> Money:
        return Money(self.total_price_amount)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "line_number": self.line_number,
            "item_id": self.item_id,
            "item_code": self.item.code if self.item is not None else None,
            "item_name": self.item.name if self.item is not None else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price.to_json(),
            "discount_percent": str(self.discount_percent),
            "total_price": self.total_price.to_json(),
        }


class BillSequence(db.Model):
    """
    Counter row handing out bill serial sequence numbers.

    Uses an UPDATE ... SET next_number = next_number + 1 so concurrent sales
    serialize on this row.
    """
    __tablename__ = "bill_sequences"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_bill_sequences_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
