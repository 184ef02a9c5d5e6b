"""create institutes, ledgers, ledger entries and petty cash tables

Revision ID: 3b1e5c7d9a20
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3b1e5c7d9a20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ledger_type = sa.Enum("INCOME", "EXPENSE", "BANK", name="ledgertype")
entry_source = sa.Enum("MANUAL", "COLLECTION", "SALARY", "PETTYCASH", name="entrysource")
fund_status = sa.Enum("ACTIVE", "CLOSED", name="fundstatus")
petty_cash_type = sa.Enum("FLOAT", "EXPENSE", "REPLENISHMENT", name="pettycashtransactiontype")


def upgrade() -> None:
    op.create_table(
        "institutes",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_institutes_tenant_id", "institutes", ["tenant_id"])

    op.create_table(
        "ledgers",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("institute_id", sa.String(20), sa.ForeignKey("institutes.id"), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", ledger_type, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("tenant_id", "institute_id", "name", name="uq_ledger_scope_name"),
    )
    op.create_index("ix_ledgers_tenant_id", "ledgers", ["tenant_id"])
    op.create_index("ix_ledgers_institute_id", "ledgers", ["institute_id"])

    op.create_table(
        "ledger_categories",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("ledger_id", sa.String(20), sa.ForeignKey("ledgers.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("ledger_id", "name", name="uq_category_ledger_name"),
    )
    op.create_index("ix_ledger_categories_ledger_id", "ledger_categories", ["ledger_id"])

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("institute_id", sa.String(20), sa.ForeignKey("institutes.id"), nullable=True),
        sa.Column("ledger_id", sa.String(20), sa.ForeignKey("ledgers.id"), nullable=False),
        sa.Column("category_id", sa.String(20), sa.ForeignKey("ledger_categories.id"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("debit", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("source", entry_source, nullable=False),
        sa.Column("reference_id", sa.String(30), nullable=True),
        sa.Column("payment_method", sa.String(30), nullable=True),
        sa.Column("reference_no", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("debit >= 0", name="ck_entry_debit_non_negative"),
        sa.CheckConstraint("credit >= 0", name="ck_entry_credit_non_negative"),
    )
    op.create_index("ix_ledger_entries_tenant_id", "ledger_entries", ["tenant_id"])
    op.create_index("ix_ledger_entries_institute_id", "ledger_entries", ["institute_id"])
    op.create_index("ix_ledger_entries_ledger_id", "ledger_entries", ["ledger_id"])
    op.create_index("ix_ledger_entries_date", "ledger_entries", ["date"])
    op.create_index("ix_ledger_entries_reference_id", "ledger_entries", ["reference_id"])

    op.create_table(
        "petty_cash_funds",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("institute_id", sa.String(20), sa.ForeignKey("institutes.id"), nullable=False),
        sa.Column("custodian_name", sa.String(200), nullable=False),
        sa.Column("float_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("current_balance", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", fund_status, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("float_amount > 0", name="ck_fund_float_positive"),
        sa.CheckConstraint(
            "current_balance >= 0 AND current_balance <= float_amount",
            name="ck_fund_balance_within_float",
        ),
    )
    op.create_index("ix_petty_cash_funds_tenant_id", "petty_cash_funds", ["tenant_id"])
    op.create_index("ix_petty_cash_funds_institute_id", "petty_cash_funds", ["institute_id"])

    op.create_table(
        "petty_cash_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_id", sa.String(20), sa.ForeignKey("petty_cash_funds.id"), nullable=False),
        sa.Column("type", petty_cash_type, nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("receipt_no", sa.String(50), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("ledger_entry_id", sa.Integer(), sa.ForeignKey("ledger_entries.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_petty_cash_transactions_fund_id", "petty_cash_transactions", ["fund_id"])


def downgrade() -> None:
    op.drop_index("ix_petty_cash_transactions_fund_id", table_name="petty_cash_transactions")
    op.drop_table("petty_cash_transactions")
    op.drop_index("ix_petty_cash_funds_institute_id", table_name="petty_cash_funds")
    op.drop_index("ix_petty_cash_funds_tenant_id", table_name="petty_cash_funds")
    op.drop_table("petty_cash_funds")
    for name in ("reference_id", "date", "ledger_id", "institute_id", "tenant_id"):
        op.drop_index(f"ix_ledger_entries_{name}", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_index("ix_ledger_categories_ledger_id", table_name="ledger_categories")
    op.drop_table("ledger_categories")
    op.drop_index("ix_ledgers_institute_id", table_name="ledgers")
    op.drop_index("ix_ledgers_tenant_id", table_name="ledgers")
    op.drop_table("ledgers")
    op.drop_index("ix_institutes_tenant_id", table_name="institutes")
    op.drop_table("institutes")

    bind = op.get_bind()
    for enum_type in (petty_cash_type, fund_status, entry_source, ledger_type):
        enum_type.drop(bind, checkfirst=True)
