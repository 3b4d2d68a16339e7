"""reward definitions, redemption ledger and audit log

Revision ID: 0002_reward_ledger
Revises: 0001_checkout
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_reward_ledger"
down_revision = "0001_checkout"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rewards",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="standard"),
        sa.Column("points_cost", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("discount_fixed_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("free_item_product_ids", sa.JSON(), nullable=True),
        sa.Column("criteria", sa.JSON(), nullable=True),
        sa.Column("allow_multiple_claims", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("earning_hint", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "claimed_rewards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reward_id", sa.String(length=36), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("is_exclusive", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=True),
    )
    op.create_index("ix_claimed_rewards_customer_reward", "claimed_rewards", ["customer_id", "reward_id"])
    op.create_index(
        "uq_claimed_rewards_exclusive",
        "claimed_rewards",
        ["customer_id", "reward_id"],
        unique=True,
        sqlite_where=sa.text("is_exclusive = 1"),
        postgresql_where=sa.text("is_exclusive"),
    )

    op.create_table(
        "customer_vouchers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("reward_id", sa.String(length=36), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name_snapshot", sa.String(length=255), nullable=False),
        sa.Column("description_snapshot", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("granted_by_method", sa.String(length=32), nullable=False),
        sa.Column("granted_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("grant_notes", sa.Text(), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=True),
    )
    op.create_index("ix_customer_vouchers_customer_id", "customer_vouchers", ["customer_id"])

    op.create_table(
        "reward_usages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reward_id", sa.String(length=36), sa.ForeignKey("rewards.id"), nullable=False),
        sa.Column("voucher_id", sa.String(length=36), sa.ForeignKey("customer_vouchers.id"), nullable=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("usage_type", sa.String(length=16), nullable=False, server_default="other"),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("free_items", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reward_usages_reward_id", "reward_usages", ["reward_id"])
    op.create_index("ix_reward_usages_order_id", "reward_usages", ["order_id"])
    op.create_index("ix_reward_usages_customer_id", "reward_usages", ["customer_id"])

    op.create_table(
        "loyalty_points_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(length=16), nullable=False),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column("reward_id", sa.String(length=36), sa.ForeignKey("rewards.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_loyalty_points_transactions_user_id", "loyalty_points_transactions", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("actor_identifier", sa.String(length=255), nullable=False),
        sa.Column("action_type", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=True),
        sa.Column("reward_id", sa.String(length=36), nullable=True),
        sa.Column("before_snapshot", sa.JSON(), nullable=True),
        sa.Column("after_snapshot", sa.JSON(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_loyalty_points_transactions_user_id", table_name="loyalty_points_transactions")
    op.drop_table("loyalty_points_transactions")
    op.drop_index("ix_reward_usages_customer_id", table_name="reward_usages")
    op.drop_index("ix_reward_usages_order_id", table_name="reward_usages")
    op.drop_index("ix_reward_usages_reward_id", table_name="reward_usages")
    op.drop_table("reward_usages")
    op.drop_index("ix_customer_vouchers_customer_id", table_name="customer_vouchers")
    op.drop_table("customer_vouchers")
    op.drop_index("uq_claimed_rewards_exclusive", table_name="claimed_rewards")
    op.drop_index("ix_claimed_rewards_customer_reward", table_name="claimed_rewards")
    op.drop_table("claimed_rewards")
    op.drop_table("rewards")
