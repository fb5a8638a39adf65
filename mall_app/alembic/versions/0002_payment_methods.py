"""configurable payment methods

Revision ID: 0002_payment_methods
Revises: 0001_initial
Create Date: 2026-10-19 14:30:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002_payment_methods"
down_revision: Union[str, Sequence[str], None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "bank_transfer",
                "mobile_money",
                "cash",
                "credit_card",
                name="paymentmethod",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    # batch mode so SQLite can take the new foreign key
    with op.batch_alter_table("payments") as batch:
        batch.add_column(sa.Column("payment_method_id", sa.Uuid(), nullable=True))
        batch.create_foreign_key(
            "fk_payments_payment_method_id",
            "payment_methods",
            ["payment_method_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch.create_index("ix_payments_payment_method_id", ["payment_method_id"])


def downgrade() -> None:
    with op.batch_alter_table("payments") as batch:
        batch.drop_index("ix_payments_payment_method_id")
        batch.drop_constraint("fk_payments_payment_method_id", type_="foreignkey")
        batch.drop_column("payment_method_id")
    op.drop_table("payment_methods")
