from __future__ import annotations

from datetime import date

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, utcnow
from ..validation import ValidationError, parse_int
from .enums import Channel


class StockBatch(db.Model):
    """
    One supplier delivery of an item.

    INVARIANTS:
    - quantity_received is fixed at creation (> 0)
    - quantity_remaining starts at quantity_received and only goes down via reduce_stock()
    - expiry_date (optional) is never before purchase_date
    - batches are never deleted, even at zero remaining (audit trail)
    """
    __tablename__ = "stock_batches"
    __table_args__ = (
        db.Index("ix_stock_batches_item_purchase", "item_id", "purchase_date"),
        db.Index("ix_stock_batches_item_expiry", "item_id", "expiry_date"),
        db.CheckConstraint("quantity_received > 0", name="ck_stock_batches_received_positive"),
        db.CheckConstraint("quantity_remaining >= 0", name="ck_stock_batches_remaining_non_negative"),
        db.CheckConstraint(
            "quantity_remaining <= quantity_received",
            name="ck_stock_batches_remaining_lte_received",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity_received = db.Column(db.Integer, nullable=False)
    quantity_remaining = db.Column(db.Integer, nullable=False)

    purchase_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    item = db.relationship("Item")
    __mapper_args__ = {"version_id_col": version_id}

    def __init__(self, *, item, quantity_received, purchase_date, expiry_date=None, **kwargs):
        if item is None:
            raise ValidationError("Item cannot be null")
        quantity_received = parse_int(quantity_received, "quantity received")
        if quantity_received <= 0:
            raise ValidationError("Quantity must be positive")
        if purchase_date is None:
            raise ValidationError("Purchase date cannot be null")
        if expiry_date is not None and expiry_date < purchase_date:
            raise ValidationError("Expiry date cannot be before purchase date")

        super().__init__(
            item=item,
            quantity_received=quantity_received,
            quantity_remaining=kwargs.pop("quantity_remaining", quantity_received),
            purchase_date=purchase_date,
            expiry_date=expiry_date,
            **kwargs,
        )

    def reduce_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity to reduce must be positive")
        if quantity > self.quantity_remaining:
            raise ValidationError("Cannot reduce more than remaining quantity")
        self.quantity_remaining -= quantity

    def is_expired(self, as_of: date) -> bool:
        return self.expiry_date is not None and as_of > self.expiry_date

    def days_until_expiry(self, as_of: date) -> int | None:
        if self.expiry_date is None:
            return None
        return (self.expiry_date - as_of).days

    def __repr__(self) -> str:
        return (
            f"<StockBatch id={self.id} item_id={self.item_id} remaining={self.quantity_remaining}"
            f" purchased={self.purchase_date} expires={self.expiry_date}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_code": self.item.code if self.item is not None else None,
            "quantity_received": self.quantity_received,
            "quantity_remaining": self.quantity_remaining,
            "purchase_date": to_iso_date(self.purchase_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "created_at": to_utc_z(self.created_at),
        }


class ChannelStock(db.Model):
    """
    Available quantity of one item in one sales channel.

    SHELF (counter sales) and WEBSITE (online sales) are independent pools:
    one row per (item, channel). Sales decrement it, batch moves increment it.
    quantity never goes negative.
    """
    __tablename__ = "channel_stock"
    __table_args__ = (
        db.UniqueConstraint("item_id", "channel", name="uq_channel_stock_item_channel"),
        db.CheckConstraint("quantity >= 0", name="ck_channel_stock_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    channel = db.Column(db.Enum(Channel, native_enum=False, length=16), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    item = db.relationship("Item")
    __mapper_args__ = {"version_id_col": version_id}

    def __init__(self, *, item, channel, quantity=0, **kwargs):
        if item is None:
            raise ValidationError("Item cannot be null")
        quantity = parse_int(quantity, "quantity")
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")
        super().__init__(item=item, channel=Channel(channel), quantity=quantity, **kwargs)

    def add_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity to add must be positive")
        self.quantity += quantity

    def reduce_stock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity to reduce must be positive")
        if quantity > self.quantity:
            raise ValidationError("Cannot reduce more than available quantity")
        self.quantity -= quantity

    def has_available(self, quantity: int) -> bool:
        return self.quantity >= quantity

    def is_below_reorder_level(self) -> bool:
        return self.item.needs_reorder(self.quantity)

    def __repr__(self) -> str:
        return f"<ChannelStock item_id={self.item_id} channel={self.channel} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_code": self.item.code if self.item is not None else None,
            "item_name": self.item.name if self.item is not None else None,
            "channel": self.channel.value,
            "quantity": self.quantity,
            "reorder_level": self.item.reorder_level if self.item is not None else None,
            "updated_at": to_utc_z(self.updated_at),
        }
