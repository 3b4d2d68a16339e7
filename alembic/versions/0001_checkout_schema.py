"""users, catalog and orders

Revision ID: 0001_checkout
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_checkout"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLE = sa.Enum("manager", "employee", "cashier", "cook", "customer", name="user_role")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False, server_default="customer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("loyalty_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("membership_tier", sa.String(length=32), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("join_date", sa.Date(), nullable=True),
        sa.Column("referrals_made", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("loyalty_points >= 0", name="ck_users_loyalty_points_non_negative"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("availability", sa.String(length=16), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "option_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("selection_type", sa.String(length=16), nullable=False, server_default="radio"),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("option_group_id", sa.Integer(), sa.ForeignKey("option_groups.id"), nullable=False),
        sa.Column("label", sa.String(length=128), nullable=False),
        sa.Column("price_modifier", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("placed_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("customer_name_snapshot", sa.String(length=255), nullable=False),
        sa.Column("subtotal_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("ticket_number", sa.String(length=16), nullable=False),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_customer_created", "orders", ["customer_id", "created_at"])
    op.create_index("ix_orders_archived_created", "orders", ["is_archived", "created_at"])

    op.create_table(
        "order_line_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("product_name_snapshot", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_snapshot", sa.Numeric(10, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_reward_item", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_order_line_items_order_id", "order_line_items", ["order_id"])

    op.create_table(
        "order_line_item_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_line_item_id", sa.Integer(), sa.ForeignKey("order_line_items.id"), nullable=False),
        sa.Column("option_id", sa.Integer(), nullable=True),
        sa.Column("group_name_snapshot", sa.String(length=128), nullable=True),
        sa.Column("label_snapshot", sa.String(length=128), nullable=False),
        sa.Column("price_modifier_snapshot", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index(
        "ix_order_line_item_options_order_line_item_id",
        "order_line_item_options",
        ["order_line_item_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_order_line_item_options_order_line_item_id", table_name="order_line_item_options")
    op.drop_table("order_line_item_options")
    op.drop_index("ix_order_line_items_order_id", table_name="order_line_items")
    op.drop_table("order_line_items")
    op.drop_index("ix_orders_archived_created", table_name="orders")
    op.drop_index("ix_orders_customer_created", table_name="orders")
    op.drop_index("ix_orders_customer_id", table_name="orders")
    op.drop_table("orders")
    op.drop_table("options")
    op.drop_table("option_groups")
    op.drop_table("products")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    USER_ROLE.drop(op.get_bind(), checkfirst=True)
