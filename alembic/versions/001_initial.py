"""Initial schema: staff, brokers, cars, broker commissions, payments, audit logs

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Staff
    op.create_table(
        "staff_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_staff_profiles_role", "staff_profiles", ["role"])

    # Brokers
    op.create_table(
        "brokers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("total_commission_due", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("total_commission_paid", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_commission_paid >= 0", name="ck_broker_commission_paid_positive"),
    )

    # Cars
    op.create_table(
        "cars",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("car_type", sa.String(100), nullable=False),
        sa.Column("model_number", sa.String(100), nullable=False),
        sa.Column("registration_number", sa.String(20), nullable=False),
        sa.Column("purchase_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("hire_purchase_deposit", sa.Numeric(15, 2), nullable=True),
        sa.Column("payment_period_months", sa.Integer(), nullable=True),
        sa.Column("broker_id", sa.Uuid(), sa.ForeignKey("brokers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("broker_commission_type", sa.String(20), nullable=True),
        sa.Column("broker_commission_value", sa.Numeric(15, 2), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("staff_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("purchase_price > 0", name="ck_car_purchase_price_positive"),
        sa.CheckConstraint(
            "broker_commission_value IS NULL OR broker_commission_value >= 0",
            name="ck_car_commission_value_positive",
        ),
    )
    op.create_index("ix_cars_registration_number", "cars", ["registration_number"], unique=True)
    op.create_index("ix_cars_broker_id", "cars", ["broker_id"])
    op.create_index("ix_cars_status", "cars", ["status"])

    # Broker commissions: one current record per car
    op.create_table(
        "broker_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("broker_id", sa.Uuid(), sa.ForeignKey("brokers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("car_id", sa.Uuid(), sa.ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("commission_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("commission_amount >= 0", name="ck_commission_amount_positive"),
        sa.CheckConstraint(
            "(is_paid AND paid_date IS NOT NULL) OR (NOT is_paid AND paid_date IS NULL)",
            name="ck_commission_paid_date_consistent",
        ),
    )
    op.create_index("ix_broker_commissions_broker_id", "broker_commissions", ["broker_id"])
    op.create_index("ix_commission_broker_paid", "broker_commissions", ["broker_id", "is_paid"])

    # Payments
    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("car_id", sa.Uuid(), sa.ForeignKey("cars.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("payment_type", sa.String(40), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("received_by", sa.Uuid(), sa.ForeignKey("staff_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )
    op.create_index("ix_payments_car_id", "payments", ["car_id"])
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"])

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("actor_id", sa.Uuid(), sa.ForeignKey("staff_profiles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("target_type", sa.String(30), nullable=False),
        sa.Column("target_id", sa.Uuid(), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_target_id", "audit_logs", ["target_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("payments")
    op.drop_table("broker_commissions")
    op.drop_table("cars")
    op.drop_table("brokers")
    op.drop_table("staff_profiles")
