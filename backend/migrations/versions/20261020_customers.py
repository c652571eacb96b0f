"""Customer registry; bills.customer_id references customers

Revision ID: 20261020_customers
Revises: 20261019_initial
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_customers"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phone", name="uq_customers_phone"),
        sqlite_autoincrement=True,
    )

    # SQLite: batch mode rebuilds bills to add the foreign key
    with op.batch_alter_table("bills") as batch_op:
        batch_op.create_foreign_key("fk_bills_customer_id", "customers", ["customer_id"], ["id"])


def downgrade():
    with op.batch_alter_table("bills") as batch_op:
        batch_op.drop_constraint("fk_bills_customer_id", type_="foreignkey")

    op.drop_table("customers")
