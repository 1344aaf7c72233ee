"""tenants, profiles, credit ledger, rarity catalog, rewards, tier weights, box transactions

Revision ID: 001_box_core_initial
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_box_core_initial"
down_revision = None
branch_labels = None
depends_on = None

profile_role = sa.Enum("ADMIN", "CS", "MEMBER", name="profilerole")
ledger_kind = sa.Enum("TOPUP", "ADJUSTMENT", "BOX_PURCHASE", name="ledgerkind")
rarity_code = sa.Enum(
    "COMMON", "RARE", "EPIC", "SUPREME", "LEGENDARY", "SPECIAL_LEGENDARY", name="raritycode"
)
reward_type = sa.Enum("CASH", "ITEM", name="rewardtype")
box_status = sa.Enum("PURCHASED", "OPENED", "EXPIRED", name="boxstatus")


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("weights_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(op.f("ix_tenants_id"), "tenants", ["id"], unique=False)
    op.create_index(op.f("ix_tenants_code"), "tenants", ["code"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("role", profile_role, nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("credit_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("tenant_id", "username", name="uq_profiles_tenant_username"),
        sa.CheckConstraint("credit_balance >= 0", name="ck_profiles_credit_balance_non_negative"),
    )
    op.create_index(op.f("ix_profiles_id"), "profiles", ["id"], unique=False)
    op.create_index(op.f("ix_profiles_tenant_id"), "profiles", ["tenant_id"], unique=False)

    op.create_table(
        "credit_ledger",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("kind", ledger_kind, nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_credit_ledger_id"), "credit_ledger", ["id"], unique=False)
    op.create_index(op.f("ix_credit_ledger_tenant_id"), "credit_ledger", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_credit_ledger_member_id"), "credit_ledger", ["member_id"], unique=False)
    op.create_index(
        "ix_credit_ledger_member_created", "credit_ledger", ["member_id", "created_at", "id"], unique=False
    )

    op.create_table(
        "rarities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", rarity_code, nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("color_key", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, unique=True),
    )
    op.create_index(op.f("ix_rarities_id"), "rarities", ["id"], unique=False)

    op.create_table(
        "rewards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("rarity_id", sa.Integer(), sa.ForeignKey("rarities.id"), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("reward_type", reward_type, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("real_probability", sa.Numeric(6, 3), nullable=False, server_default="0"),
        sa.Column("gimmick_probability", sa.Numeric(6, 3), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_rewards_amount_positive"),
    )
    op.create_index(op.f("ix_rewards_id"), "rewards", ["id"], unique=False)
    op.create_index(op.f("ix_rewards_tenant_id"), "rewards", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_rewards_rarity_id"), "rewards", ["rarity_id"], unique=False)

    op.create_table(
        "tier_rarity_weights",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("credit_tier", sa.Integer(), nullable=False),
        sa.Column("rarity_id", sa.Integer(), sa.ForeignKey("rarities.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("real_probability", sa.Numeric(6, 3), nullable=False, server_default="0"),
        sa.Column("gimmick_probability", sa.Numeric(6, 3), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "tenant_id", "credit_tier", "rarity_id", name="uq_tier_rarity_weights_tenant_tier_rarity"
        ),
    )
    op.create_index(op.f("ix_tier_rarity_weights_id"), "tier_rarity_weights", ["id"], unique=False)
    op.create_index(
        op.f("ix_tier_rarity_weights_tenant_id"), "tier_rarity_weights", ["tenant_id"], unique=False
    )

    op.create_table(
        "box_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("credit_tier", sa.Integer(), nullable=False),
        sa.Column("credit_spent", sa.Integer(), nullable=False),
        sa.Column("rarity_id", sa.Integer(), sa.ForeignKey("rarities.id"), nullable=False),
        sa.Column("reward_id", sa.Integer(), sa.ForeignKey("rewards.id"), nullable=True),
        sa.Column("status", box_status, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f("ix_box_transactions_id"), "box_transactions", ["id"], unique=False)
    op.create_index(op.f("ix_box_transactions_tenant_id"), "box_transactions", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_box_transactions_member_id"), "box_transactions", ["member_id"], unique=False)
    op.create_index(
        "ix_box_transactions_status_expires_at", "box_transactions", ["status", "expires_at"], unique=False
    )


def downgrade() -> None:
    op.drop_table("box_transactions")
    op.drop_table("tier_rarity_weights")
    op.drop_table("rewards")
    op.drop_table("rarities")
    op.drop_table("credit_ledger")
    op.drop_table("profiles")
    op.drop_table("tenants")
    bind = op.get_bind()
    for enum_type in (box_status, reward_type, rarity_code, ledger_kind, profile_role):
        enum_type.drop(bind, checkfirst=True)
