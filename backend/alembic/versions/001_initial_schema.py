"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-05-15 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

device_type = sa.Enum("PS5", "PS4", "VR", "VR_RACING", "POOL", "FRAME", "RACING", name="devicetype")
session_status = sa.Enum("ACTIVE", "ENDED", name="sessionstatus")
order_status = sa.Enum("ACTIVE", "COMPLETED", "CANCELLED", name="orderstatus")
payment_status = sa.Enum("PENDING", "PAID", "DUE", name="paymentstatus")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Devices table
    op.create_table(
        "devices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", device_type, nullable=False, index=True),
        sa.Column("counter_no", sa.Integer(), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.UniqueConstraint("type", "counter_no", name="uq_devices_type_counter_no"),
    )

    # Tokens table
    op.create_table(
        "tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token_no", sa.Integer(), nullable=False, index=True),
        *_timestamps(),
    )

    # Customers table
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
    )

    # Orders table
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False, unique=True, index=True),
        sa.Column("token_id", sa.Integer(), sa.ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("status", order_status, nullable=False, index=True),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Food lines
    op.create_table(
        "order_food_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
    )

    # Sessions table
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token_id", sa.Integer(), sa.ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("device_id", sa.Integer(), sa.ForeignKey("devices.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("player_count", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("frames_played", sa.Integer(), nullable=True),
        sa.Column("status", session_status, nullable=False, index=True),
        *_timestamps(),
    )
    op.create_index("ix_sessions_device_status", "sessions", ["device_id", "status"])

    # Bills table
    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token_id", sa.Integer(), sa.ForeignKey("tokens.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("corrected_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("amount_received", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", payment_status, nullable=False, index=True),
        sa.Column("generated_at", sa.DateTime(), nullable=False),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_reference", sa.String(200), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("bills")
    op.drop_index("ix_sessions_device_status", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("order_food_items")
    op.drop_table("orders")
    op.drop_table("customers")
    op.drop_table("tokens")
    op.drop_table("devices")
    for enum in (payment_status, order_status, session_status, device_type):
        enum.drop(op.get_bind(), checkfirst=True)
