"""initial mall dashboard schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def enum(name, *values):
    return sa.Enum(*values, name=name, native_enum=False)


currency = enum("currency", "USD", "UGX")


def timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column(
            "role", enum("userrole", "superadmin", "landlord", "tenant"), nullable=False
        ),
        sa.Column("preferred_currency", currency, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "landlord_id",
            sa.Uuid(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("unit_number", sa.String(50), nullable=False),
        sa.Column("size_sqft", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("rent_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", currency, nullable=False),
        sa.Column(
            "status",
            enum("propertystatus", "available", "occupied", "maintenance"),
            nullable=False,
        ),
        *timestamps(),
    )
    op.create_index("ix_properties_landlord_id", "properties", ["landlord_id"])

    op.create_table(
        "leases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "tenant_id",
            sa.Uuid(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "landlord_id",
            sa.Uuid(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("monthly_rent", sa.Numeric(14, 2), nullable=False),
        sa.Column("deposit", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", currency, nullable=False),
        sa.Column("terms", sa.Text(), nullable=True),
        sa.Column("status", enum("leasestatus", "active", "expired"), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_leases_property_id", "leases", ["property_id"])
    op.create_index("ix_leases_tenant_id", "leases", ["tenant_id"])
    op.create_index("ix_leases_landlord_id", "leases", ["landlord_id"])
    # at most one active lease per property
    op.create_index(
        "uq_leases_one_active_per_property",
        "leases",
        ["property_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "lease_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("lease_id", sa.Uuid(), nullable=True),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "tenant_id",
            sa.Uuid(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_lease_history_lease_id", "lease_history", ["lease_id"])

    op.create_table(
        "lease_renewal_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "lease_id",
            sa.Uuid(),
            sa.ForeignKey("leases.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("landlord_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("requested_end_date", sa.Date(), nullable=False),
        sa.Column("requested_rent", sa.Numeric(14, 2), nullable=False),
        sa.Column("request_message", sa.Text(), nullable=True),
        sa.Column(
            "status",
            enum("renewalstatus", "pending", "approved", "rejected"),
            nullable=False,
        ),
        sa.Column("response_message", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )
    op.create_index(
        "ix_lease_renewal_requests_tenant_id", "lease_renewal_requests", ["tenant_id"]
    )
    op.create_index(
        "ix_lease_renewal_requests_landlord_id", "lease_renewal_requests", ["landlord_id"]
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "lease_id",
            sa.Uuid(),
            sa.ForeignKey("leases.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("landlord_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column(
            "parent_payment_id",
            sa.Uuid(),
            sa.ForeignKey("payments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", currency, nullable=False),
        sa.Column("exchange_rate", sa.Numeric(14, 4), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            enum("paymentstatus", "pending", "partial", "paid", "overdue"),
            nullable=False,
        ),
        sa.Column(
            "payment_method",
            enum(
                "paymentmethod", "bank_transfer", "mobile_money", "cash", "credit_card"
            ),
            nullable=True,
        ),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("submitted_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index("ix_payments_lease_id", "payments", ["lease_id"])
    op.create_index("ix_payments_tenant_id", "payments", ["tenant_id"])
    op.create_index("ix_payments_landlord_id", "payments", ["landlord_id"])

    op.create_table(
        "maintenance_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("landlord_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column(
            "priority",
            enum("maintenancepriority", "low", "medium", "high"),
            nullable=False,
        ),
        sa.Column(
            "status",
            enum("maintenancestatus", "pending", "in-progress", "completed"),
            nullable=False,
        ),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )
    op.create_index(
        "ix_maintenance_requests_tenant_id", "maintenance_requests", ["tenant_id"]
    )
    op.create_index(
        "ix_maintenance_requests_landlord_id", "maintenance_requests", ["landlord_id"]
    )
    op.create_index(
        "ix_maintenance_requests_property_id", "maintenance_requests", ["property_id"]
    )

    op.create_table(
        "notices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("sender_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "recipient_type",
            enum("recipienttype", "all", "individual", "property"),
            nullable=False,
        ),
        sa.Column("recipient_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("is_urgent", sa.Boolean(), nullable=False),
        sa.Column("read_status", sa.JSON(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_notices_sender_id", "notices", ["sender_id"])
    op.create_index("ix_notices_recipient_id", "notices", ["recipient_id"])
    op.create_index("ix_notices_property_id", "notices", ["property_id"])

    op.create_table(
        "currency_settings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("base_currency", sa.String(3), nullable=False, unique=True),
        sa.Column("exchange_rate_usd_to_ugx", sa.Numeric(14, 4), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=True),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("currency_settings")
    op.drop_table("notices")
    op.drop_table("maintenance_requests")
    op.drop_table("payments")
    op.drop_table("lease_renewal_requests")
    op.drop_table("lease_history")
    op.drop_table("leases")
    op.drop_table("properties")
    op.drop_table("profiles")
