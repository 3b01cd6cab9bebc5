"""pricing rules and recurring promotions

Revision ID: 3a7c1e9d2b10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a7c1e9d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_user_id", sa.String(), nullable=False),
        sa.Column("offer_id", sa.String(), nullable=True),
        sa.Column("rule_type", sa.String(), nullable=False),
        sa.Column("rule_name", sa.String(), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("price_modifier", sa.Float(), nullable=False),
        sa.Column("is_percentage", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_pricing_rules_id", "pricing_rules", ["id"])
    op.create_index("ix_pricing_rules_business_user_id", "pricing_rules", ["business_user_id"])
    op.create_index("ix_pricing_rules_offer_id", "pricing_rules", ["offer_id"])

    op.create_table(
        "recurring_promotions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_user_id", sa.String(), nullable=False),
        sa.Column("offer_id", sa.String(), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("discount_percentage", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_recurring_promotions_id", "recurring_promotions", ["id"])
    op.create_index(
        "ix_recurring_promotions_business_user_id", "recurring_promotions", ["business_user_id"]
    )
    op.create_index("ix_recurring_promotions_offer_id", "recurring_promotions", ["offer_id"])


def downgrade():
    op.drop_table("recurring_promotions")
    op.drop_table("pricing_rules")
