"""Add payout scheduling and deal versioning.

- deals.effective_date / deals.deposit_date
- deals.version (optimistic lock for recomputation)
- payouts table: one row per commission split once the deal is effective

Revision ID: 001_add_payouts
Revises: 000_initial_schema
"""

from typing import Union

from alembic import op
from sqlalchemy import inspect
import sqlalchemy as sa

revision: str = "001_add_payouts"
down_revision: Union[str, None] = "000_initial_schema"
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def _column_exists(table: str, column: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    columns = [c["name"] for c in insp.get_columns(table)]
    return column in columns


def _table_exists(table: str) -> bool:
    return table in inspect(op.get_bind()).get_table_names()


def upgrade() -> None:
    if not _column_exists("deals", "effective_date"):
        op.add_column("deals", sa.Column("effective_date", sa.Date(), nullable=True))

    if not _column_exists("deals", "deposit_date"):
        op.add_column("deals", sa.Column("deposit_date", sa.Date(), nullable=True))
        op.create_index("ix_deals_deposit_date", "deals", ["deposit_date"])

    if not _column_exists("deals", "version"):
        op.add_column(
            "deals",
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        )

    if not _table_exists("payouts"):
        op.create_table(
            "payouts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
            sa.Column(
                "split_id",
                sa.Integer(),
                sa.ForeignKey("commission_splits.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("beneficiary_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("amount", sa.Numeric(14, 4), nullable=False),
            sa.Column(
                "kind",
                sa.Enum("base_commission", "override", name="payoutkind"),
                nullable=False,
            ),
            sa.Column("deposit_date", sa.Date(), nullable=False),
            sa.Column("week_start", sa.Date(), nullable=False),
            sa.Column("week_end", sa.Date(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        )
        op.create_index("ix_payouts_deal_id", "payouts", ["deal_id"])
        op.create_index("ix_payouts_split_id", "payouts", ["split_id"])
        op.create_index("ix_payouts_beneficiary_id", "payouts", ["beneficiary_id"])
        op.create_index("ix_payouts_deposit_date", "payouts", ["deposit_date"])
        op.create_index("ix_payouts_week_start", "payouts", ["week_start"])


def downgrade() -> None:
    if _table_exists("payouts"):
        op.drop_table("payouts")
        sa.Enum(name="payoutkind").drop(op.get_bind(), checkfirst=True)

    if _column_exists("deals", "version"):
        op.drop_column("deals", "version")

    if _column_exists("deals", "deposit_date"):
        op.drop_index("ix_deals_deposit_date", table_name="deals")
        op.drop_column("deals", "deposit_date")

    if _column_exists("deals", "effective_date"):
        op.drop_column("deals", "effective_date")
