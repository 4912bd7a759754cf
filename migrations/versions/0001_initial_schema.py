"""users, clients, loans and payments

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("control_number", sa.String(20), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("nickname", sa.String(50), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("religion", sa.String(50), nullable=True),
        sa.Column("civil_status", sa.String(20), nullable=True),
        sa.Column("home_address", sa.Text(), nullable=False),
        sa.Column("years_of_residence", sa.Integer(), nullable=True),
        sa.Column("facebook_account", sa.String(100), nullable=True),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("contact_number", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
        sa.UniqueConstraint("control_number", name="uq_clients_control_number"),
    )
    op.create_index("ix_clients_deleted_at", "clients", ["deleted_at"])

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("control_number", sa.String(20), nullable=False),
        sa.Column("date_of_release", sa.Date(), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("amortization", sa.Numeric(12, 2), nullable=False),
        sa.Column("terms", sa.Integer(), nullable=False),
        sa.Column("mode", sa.String(20), nullable=False, server_default="Weekly"),
        sa.Column("outstanding_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_weeks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_period_weeks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="Active"),
        sa.Column("due_date", sa.String(20), nullable=True),
        sa.Column("deductions", sa.String(100), nullable=True),
        sa.Column("amount_release", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("method_of_payment", sa.String(50), nullable=True),
        sa.Column("credit_history", sa.String(50), nullable=True),
        sa.Column("recommended_by", sa.String(100), nullable=True),
        sa.Column("approved_by", sa.String(100), nullable=True),
        sa.Column("checked_by", sa.String(100), nullable=True),
        sa.Column("noted_by", sa.String(100), nullable=True),
        sa.Column("loan_cycle", sa.Integer(), nullable=True),
        sa.Column("recommended_loan_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("approved_loan_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("application_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_loans"),
        sa.UniqueConstraint("control_number", name="uq_loans_control_number"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], name="fk_loans_client_id_clients"),
        sa.CheckConstraint("total_amount >= 0", name="ck_loans_total_amount_nonneg"),
        sa.CheckConstraint("amortization >= 0", name="ck_loans_amortization_nonneg"),
        sa.CheckConstraint("outstanding_balance >= 0", name="ck_loans_outstanding_nonneg"),
        sa.CheckConstraint("paid_weeks >= 0", name="ck_loans_paid_weeks_nonneg"),
        sa.CheckConstraint(
            "status IN ('Active', 'Paid', 'Overdue', 'Default')", name="ck_loans_status"
        ),
    )
    op.create_index("ix_loans_client_id", "loans", ["client_id"])
    op.create_index("ix_loans_status", "loans", ["status"])
    op.create_index("ix_loans_deleted_at", "loans", ["deleted_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("loan_id", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount_due", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column("remaining_balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("is_partial", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("completes_week", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.ForeignKeyConstraint(["loan_id"], ["loans.id"], name="fk_payments_loan_id_loans"),
        sa.CheckConstraint("week_number >= 1", name="ck_payments_week_number_positive"),
        sa.CheckConstraint("amount_due >= 0", name="ck_payments_amount_due_nonneg"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_payments_amount_paid_nonneg"),
        sa.CheckConstraint("remaining_balance >= 0", name="ck_payments_remaining_nonneg"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Partial', 'Paid', 'Overdue')", name="ck_payments_status"
        ),
    )
    op.create_index("ix_payments_loan_id", "payments", ["loan_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_deleted_at", "payments", ["deleted_at"])
    op.create_index("ix_payments_loan_week", "payments", ["loan_id", "week_number"])
    op.create_index(
        "uq_payments_full_week",
        "payments",
        ["loan_id", "week_number"],
        unique=True,
        postgresql_where=sa.text("is_partial = false AND deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_payments_full_week", table_name="payments")
    op.drop_index("ix_payments_loan_week", table_name="payments")
    op.drop_index("ix_payments_deleted_at", table_name="payments")
    op.drop_index("ix_payments_status", table_name="payments")
    op.drop_index("ix_payments_loan_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_loans_deleted_at", table_name="loans")
    op.drop_index("ix_loans_status", table_name="loans")
    op.drop_index("ix_loans_client_id", table_name="loans")
    op.drop_table("loans")
    op.drop_index("ix_clients_deleted_at", table_name="clients")
    op.drop_table("clients")
    op.drop_index("ix_users_deleted_at", table_name="users")
    op.drop_table("users")
