"""users, tokens, folders, lists, items

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _ordered_columns() -> list[sa.Column]:
    # Shared by folders, lists and items.
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_is_active", "users", ["is_active"], unique=False)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "tokens",
        sa.Column("hash", sa.LargeBinary(length=32), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scope", sa.String(length=50), nullable=False),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tokens_user_id", "tokens", ["user_id"], unique=False)
    op.create_index("ix_tokens_scope", "tokens", ["scope"], unique=False)
    op.create_index("ix_tokens_expired_at", "tokens", ["expired_at"], unique=False)

    op.create_table(
        "folders",
        *_ordered_columns(),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=False),
    )
    op.create_index("ix_folders_user_id", "folders", ["user_id"], unique=False)
    op.create_index("ix_folders_created_at", "folders", ["created_at"], unique=False)
    op.create_index("ix_folders_user_id_order", "folders", ["user_id", "order"], unique=False)

    op.create_table(
        "lists",
        *_ordered_columns(),
        sa.Column(
            "folder_id",
            sa.Integer(),
            sa.ForeignKey("folders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=False),
        sa.Column("link", sa.String(length=36), nullable=True),
        sa.UniqueConstraint("link", name="uq_lists_link"),
    )
    op.create_index("ix_lists_user_id", "lists", ["user_id"], unique=False)
    op.create_index("ix_lists_folder_id", "lists", ["folder_id"], unique=False)
    op.create_index("ix_lists_created_at", "lists", ["created_at"], unique=False)
    op.create_index(
        "ix_lists_user_id_folder_id_order",
        "lists",
        ["user_id", "folder_id", "order"],
        unique=False,
    )

    op.create_table(
        "items",
        *_ordered_columns(),
        sa.Column(
            "list_id",
            sa.Integer(),
            sa.ForeignKey("lists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "quantity_type", sa.String(length=50), nullable=False, server_default=sa.text("''")
        ),
        sa.Column("price", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_starred", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("file", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_items_user_id", "items", ["user_id"], unique=False)
    op.create_index("ix_items_list_id", "items", ["list_id"], unique=False)
    op.create_index("ix_items_created_at", "items", ["created_at"], unique=False)
    op.create_index(
        "ix_items_user_id_list_id_order", "items", ["user_id", "list_id", "order"], unique=False
    )


def downgrade() -> None:
    op.drop_table("items")
    op.drop_table("lists")
    op.drop_table("folders")
    op.drop_table("tokens")
    op.drop_table("users")
