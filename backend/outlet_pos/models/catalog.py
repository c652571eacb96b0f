from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..money import Money, round2
from ..time_utils import to_utc_z, utcnow
from ..validation import (
    ValidationError,
    parse_decimal,
    parse_int,
    require_text,
    validate_discount_percent,
    validate_unit_price,
)


def normalize_item_code(value) -> str:
    """Item codes are trimmed and upper-cased; " sku1 " and "SKU1" are the same item."""
    if value is None:
        raise ValidationError("Item code cannot be null or empty")
    code = str(value).strip().upper()
    if not code:
        raise ValidationError("Item code cannot be null or empty")
    if len(code) > 64:
        raise ValidationError("Item code exceeds max length 64")
    return code


class Item(db.Model):
    """
    Catalog entry.

    CODE DESIGN DECISION:
    Item.code is the normalized, unique lookup key used by carts and stock moves.
    It is assigned once; re-assigning a different code raises.

    VALIDATION:
    Every assignment to name/unit_price/discount_percent/reorder_level re-runs
    its validator, so an Item can never hold an invalid value, before or after
    it is persisted. Mutations of persisted items belong inside a unit of work
    (see services/catalog_service.py).
    """
    __tablename__ = "items"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_items_code"),
        db.Index("ix_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage is a 2-digit decimal; exposed as Money via unit_price
    unit_price_amount = db.Column("unit_price", db.Numeric(12, 2), nullable=False)

    # Percentage, 0-100 inclusive
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)

    reorder_level = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __init__(self, *, code, name, unit_price, discount_percent=0, reorder_level=0, **kwargs):
        super().__init__(
            code=code,
            name=name,
            unit_price=unit_price,
            discount_percent=discount_percent,
            reorder_level=reorder_level,
            **kwargs,
        )

    @validates("code")
    def _validate_code(self, key, value):
        code = normalize_item_code(value)
        if self.code is not None and self.code != code:
            raise ValidationError("Item code cannot be changed")
        return code

    @validates("name")
    def _validate_name(self, key, value):
        return require_text(value, "Item name", max_length=255)

    @validates("unit_price_amount")
    def _validate_unit_price(self, key, value):
        if value is None:
            raise ValidationError("Unit price must be non-negative")
        return validate_unit_price(Money.of(value).amount)

    @validates("discount_percent")
    def _validate_discount(self, key, value):
        if value is None:
            raise ValidationError("Discount must be between 0 and 100")
        # column is Numeric(5, 2)
        return validate_discount_percent(round2(parse_decimal(value, "discount")))

    @validates("reorder_level")
    def _validate_reorder_level(self, key, value):
        if isinstance(value, int) and not isinstance(value, bool) and value < 0:
            raise ValidationError("Reorder level cannot be negative")
        return parse_int(value, "reorder level", minimum=0)

    @property
    def unit_price(self) -> Money:
        return Money(self.unit_price_amount)

    @unit_price.setter
    def unit_price(self, value) -> None:
        self.unit_price_amount = Money.of(value).amount

    def calculate_total_price(self, quantity: int) -> Money:
        """Extended price for `quantity` units after this item's discount."""
        return self.unit_price.multiply(quantity).apply_discount(self.discount_percent)

    def needs_reorder(self, current_stock: int) -> bool:
        return current_stock < self.reorder_level

    def __repr__(self) -> str:
        return f"<Item id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "unit_price": self.unit_price.to_json(),
            "discount_percent": str(self.discount_percent),
            "reorder_level": self.reorder_level,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
