"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LADDER_TIERS = ("prodigy", "ba", "sa", "ga", "mga", "partner", "ao")
POLICY_TYPES = (
    "term", "whole_life", "universal_life", "iul", "vul", "final_expense",
    "annuity", "disability", "ltc", "critical_illness", "other",
)
DEAL_STATUSES = ("submitted", "pending", "approved", "issued", "in_force", "lapsed", "cancelled")
AUDIT_ACTIONS = (
    "login", "logout", "create_deal", "update_deal", "recompute_commissions",
    "delete_deal", "create_person", "update_person", "create_carrier", "update_carrier",
)


def upgrade() -> None:
    """Create people, carriers, deals, splits and audit tables."""

    # Users (people of the hierarchy)
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("tier", sa.Enum(*LADDER_TIERS, name="laddertier"), nullable=False),
        sa.Column("upline_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_tier", "users", ["tier"])
    op.create_index("ix_users_upline_id", "users", ["upline_id"])

    # Carriers
    op.create_table(
        "carriers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), unique=True, nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("insurance_kinds", sa.JSON(), nullable=False),
        sa.Column("life_fyc", sa.Numeric(6, 4), nullable=True),
        sa.Column("health_fyc", sa.Numeric(6, 4), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_carriers_name", "carriers", ["name"], unique=True)

    # Deals
    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("seller_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("client_age", sa.Integer(), nullable=True),
        sa.Column("client_state", sa.String(50), nullable=True),
        sa.Column("client_phone", sa.String(50), nullable=True),
        sa.Column("policy_number", sa.String(100), nullable=True),
        sa.Column("policy_type", sa.Enum(*POLICY_TYPES, name="policytype"), nullable=False),
        sa.Column("lead_source", sa.String(100), nullable=True),
        sa.Column("face_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("draft_date", sa.Date(), nullable=True),
        sa.Column("application_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.Enum(*DEAL_STATUSES, name="dealstatus"), nullable=False),
        sa.Column("carrier_name", sa.String(150), nullable=False),
        sa.Column("insurance_kind", sa.Enum("life", "health", name="insurancekind"), nullable=False),
        sa.Column("annual_premium", sa.Numeric(12, 2), nullable=False),
        sa.Column("fyc_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("base_commission", sa.Numeric(12, 2), nullable=False),
        sa.Column("seller_commission", sa.Numeric(14, 4), nullable=False),
        sa.Column("manager_override", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("owner_override", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("total_commission_pool", sa.Numeric(14, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_deals_seller_id", "deals", ["seller_id"])
    op.create_index("ix_deals_manager_id", "deals", ["manager_id"])
    op.create_index("ix_deals_status", "deals", ["status"])

    # Commission splits
    op.create_table(
        "commission_splits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("beneficiary_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("beneficiary_name", sa.String(200), nullable=False),
        sa.Column("amount", sa.Numeric(14, 4), nullable=False),
        sa.Column("level_delta", sa.Integer(), nullable=False),
        sa.Column("is_override", sa.Boolean(), nullable=False),
        sa.Column(
            "role_in_hierarchy",
            sa.Enum("agent", "manager", "owner", name="hierarchyrole"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_commission_splits_deal_id", "commission_splits", ["deal_id"])
    op.create_index("ix_commission_splits_beneficiary_id", "commission_splits", ["beneficiary_id"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.Enum(*AUDIT_ACTIONS, name="auditaction"), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("commission_splits")
    op.drop_table("deals")
    op.drop_table("carriers")
    op.drop_table("users")

    for enum_name in (
        "auditaction", "hierarchyrole", "insurancekind", "dealstatus",
        "policytype", "laddertier",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
