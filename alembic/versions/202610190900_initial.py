"""users and accounts

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column(
            "type",
            sa.Enum("payable", "receivable", name="accounttype"),
            nullable=False,
        ),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "paid", name="accountstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents > 0", name="ck_accounts_amount_positive"),
    )
    op.create_index("ix_accounts_owner_due", "accounts", ["owner_id", "due_date"])
    op.create_index(
        "ix_accounts_owner_status_due",
        "accounts",
        ["owner_id", "status", "due_date"],
    )
    op.create_index(
        "ix_accounts_owner_created", "accounts", ["owner_id", "created_at"]
    )


def downgrade():
    op.drop_index("ix_accounts_owner_created", table_name="accounts")
    op.drop_index("ix_accounts_owner_status_due", table_name="accounts")
    op.drop_index("ix_accounts_owner_due", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("users")
