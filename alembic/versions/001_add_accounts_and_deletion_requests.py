"""Add accounts, deletion_requests and deletion_initiation_attempts tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_type", sa.String(32), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("totp_secret", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_type", "email", name="uq_accounts_type_email"),
    )
    op.create_index("ix_accounts_account_type", "accounts", ["account_type"])
    op.create_index("ix_accounts_email", "accounts", ["email"])

    op.create_table(
        "deletion_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("account_type", sa.String(32), nullable=False),
        sa.Column("method", sa.String(16), nullable=False),
        sa.Column("email_code_hash", sa.String(64), nullable=True),
        sa.Column("email_code_expires_at", sa.DateTime(), nullable=True),
        sa.Column("sms_code_hash", sa.String(64), nullable=True),
        sa.Column("sms_code_expires_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("invalidated_reason", sa.String(16), nullable=True),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("deletion_due_at", sa.DateTime(), nullable=True),
        sa.Column("handed_off_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_deletion_requests_token", "deletion_requests", ["token"], unique=True)
    op.create_index("ix_deletion_requests_account_id", "deletion_requests", ["account_id"])
    op.create_index("ix_deletion_requests_status", "deletion_requests", ["status"])
    op.create_index("ix_deletion_requests_expires_at", "deletion_requests", ["expires_at"])
    # One live (pending) request per account
    op.create_index(
        "uq_deletion_requests_live_account",
        "deletion_requests",
        ["account_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "deletion_initiation_attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email_hash", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deletion_initiation_attempts_email_hash", "deletion_initiation_attempts", ["email_hash"])
    op.create_index("ix_deletion_initiation_attempts_client_id", "deletion_initiation_attempts", ["client_id"])
    op.create_index("ix_deletion_initiation_attempts_created_at", "deletion_initiation_attempts", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_deletion_initiation_attempts_created_at", table_name="deletion_initiation_attempts")
    op.drop_index("ix_deletion_initiation_attempts_client_id", table_name="deletion_initiation_attempts")
    op.drop_index("ix_deletion_initiation_attempts_email_hash", table_name="deletion_initiation_attempts")
    op.drop_table("deletion_initiation_attempts")

    op.drop_index("uq_deletion_requests_live_account", table_name="deletion_requests")
    op.drop_index("ix_deletion_requests_expires_at", table_name="deletion_requests")
    op.drop_index("ix_deletion_requests_status", table_name="deletion_requests")
    op.drop_index("ix_deletion_requests_account_id", table_name="deletion_requests")
    op.drop_index("ix_deletion_requests_token", table_name="deletion_requests")
    op.drop_table("deletion_requests")

    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_index("ix_accounts_account_type", table_name="accounts")
    op.drop_table("accounts")
