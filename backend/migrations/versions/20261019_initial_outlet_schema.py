"""Initial outlet schema: items, stock batches, channel stock, bills

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("reorder_level", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_items_code"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_items_name", "items", ["name"])

    op.create_table(
        "stock_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("quantity_received", sa.Integer(), nullable=False),
        sa.Column("quantity_remaining", sa.Integer(), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity_received > 0", name="ck_stock_batches_received_positive"),
        sa.CheckConstraint("quantity_remaining >= 0", name="ck_stock_batches_remaining_non_negative"),
        sa.CheckConstraint(
            "quantity_remaining <= quantity_received",
            name="ck_stock_batches_remaining_lte_received",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_batches_item_id", "stock_batches", ["item_id"])
    op.create_index("ix_stock_batches_item_purchase", "stock_batches", ["item_id", "purchase_date"])
    op.create_index("ix_stock_batches_item_expiry", "stock_batches", ["item_id", "expiry_date"])

    op.create_table(
        "channel_stock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("channel", sa.String(length=16), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id", "channel", name="uq_channel_stock_item_channel"),
        sa.CheckConstraint("quantity >= 0", name="ck_channel_stock_quantity_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_channel_stock_item_id", "channel_stock", ["item_id"])
    op.create_index("ix_channel_stock_channel", "channel_stock", ["channel"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("serial_number", sa.String(length=64), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("transaction_type", sa.String(length=16), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("payment_method", sa.String(length=32), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("cash_tendered", sa.Numeric(12, 2), nullable=True),
        sa.Column("change_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("serial_number", name="uq_bills_serial_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_bills_issued_at", "bills", ["issued_at"])
    op.create_index("ix_bills_customer_id", "bills", ["customer_id"])
    op.create_index("ix_bills_type_issued", "bills", ["transaction_type", "issued_at"])

    op.create_table(
        "bill_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bill_id", sa.Integer(), sa.ForeignKey("bills.id"), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity > 0", name="ck_bill_items_quantity_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_bill_items_bill_id", "bill_items", ["bill_id"])
    op.create_index("ix_bill_items_item_id", "bill_items", ["item_id"])

    op.create_table(
        "bill_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_bill_sequences_name"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("bill_sequences")
    op.drop_index("ix_bill_items_item_id", table_name="bill_items")
    op.drop_index("ix_bill_items_bill_id", table_name="bill_items")
    op.drop_table("bill_items")
    op.drop_index("ix_bills_type_issued", table_name="bills")
    op.drop_index("ix_bills_customer_id", table_name="bills")
    op.drop_index("ix_bills_issued_at", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_channel_stock_channel", table_name="channel_stock")
    op.drop_index("ix_channel_stock_item_id", table_name="channel_stock")
    op.drop_table("channel_stock")
    op.drop_index("ix_stock_batches_item_expiry", table_name="stock_batches")
    op.drop_index("ix_stock_batches_item_purchase", table_name="stock_batches")
    op.drop_index("ix_stock_batches_item_id", table_name="stock_batches")
    op.drop_table("stock_batches")
    op.drop_index("ix_items_name", table_name="items")
    op.drop_table("items")
