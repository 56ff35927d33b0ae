"""initial marketplace schema (users, files, products, purchases, proofs)

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PRODUCT_CATEGORY = sa.Enum("Food", "Beverage", "Clothes", "Furniture", "Tools", name="product_category")
CONTACT_TYPE = sa.Enum("phone", "email", name="contact_type")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.String(255), unique=True),
        sa.Column("phone", sa.String(32), unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("bank_account_name", sa.String(64)),
        sa.Column("bank_account_holder", sa.String(64)),
        sa.Column("bank_account_number", sa.String(64)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "file_uploads",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("file_type", sa.String(64), nullable=False),
        sa.Column("file_uri", sa.Text(), nullable=False, unique=True),
        sa.Column("file_thumbnail_uri", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("file_size >= 0", name="ck_file_upload_size_nonneg"),
    )
    op.create_index("ix_file_uploads_user_id", "file_uploads", ["user_id"])

    op.create_table(
        "products",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("category", PRODUCT_CATEGORY, nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(32), nullable=False),
        sa.Column("file_id", sa.BigInteger(), sa.ForeignKey("file_uploads.id", ondelete="SET NULL")),
        sa.Column("file_uri", sa.Text(), nullable=False, server_default=""),
        sa.Column("file_thumbnail_uri", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("qty >= 0", name="ck_product_qty_nonneg"),
        sa.CheckConstraint("price > 0", name="ck_product_price_pos"),
    )
    op.create_index("ix_products_user_id", "products", ["user_id"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("sender_name", sa.String(55), nullable=False),
        sa.Column("sender_contact_type", CONTACT_TYPE, nullable=False),
        sa.Column("sender_contact_detail", sa.String(255), nullable=False),
        sa.Column("total_price", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_price >= 0", name="ck_purchase_total_nonneg"),
    )

    op.create_table(
        "purchase_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("purchase_id", sa.Uuid(), sa.ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("purchase_id", "product_id", name="uq_purchase_item_product"),
        sa.CheckConstraint("quantity >= 2", name="ck_purchase_item_qty_min2"),
        sa.CheckConstraint("price > 0", name="ck_purchase_item_price_pos"),
    )
    op.create_index("ix_purchase_items_purchase_id", "purchase_items", ["purchase_id"])

    op.create_table(
        "purchase_payment_proofs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("purchase_id", sa.Uuid(), sa.ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "file_upload_id",
            sa.BigInteger(),
            sa.ForeignKey("file_uploads.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("purchase_id", "file_upload_id", name="uq_payment_proof_file"),
    )
    op.create_index("ix_payment_proofs_purchase", "purchase_payment_proofs", ["purchase_id"])


def downgrade() -> None:
    op.drop_index("ix_payment_proofs_purchase", table_name="purchase_payment_proofs")
    op.drop_table("purchase_payment_proofs")
    op.drop_index("ix_purchase_items_purchase_id", table_name="purchase_items")
    op.drop_table("purchase_items")
    op.drop_table("purchases")
    op.drop_index("ix_products_user_id", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_file_uploads_user_id", table_name="file_uploads")
    op.drop_table("file_uploads")
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("users")

    bind = op.get_bind()
    CONTACT_TYPE.drop(bind, checkfirst=True)
    PRODUCT_CATEGORY.drop(bind, checkfirst=True)
