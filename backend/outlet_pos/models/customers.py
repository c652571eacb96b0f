from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import require_text


class Customer(db.Model):
    """
    Registered counter customer.

    WHY: a bill may name the customer it was sold to. When a sale carries a
    customer_id it must point at a row here, otherwise the sale is NOT_FOUND.

    The phone number is the lookup key cashiers use and is unique.
    Name and phone re-validate on every assignment, like Item.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_customers_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __mapper_args__ = {"version_id_col": version_id}

    @validates("name")
    def _validate_name(self, key, value):
        return require_text(value, "Customer name", max_length=255)

    @validates("phone")
    def _validate_phone(self, key, value):
        return require_text(value, "Customer phone", max_length=32)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
