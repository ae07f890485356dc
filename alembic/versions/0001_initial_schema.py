"""Initial schema: users, servers, progression, channels, activity, achievements

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

JsonType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("discriminator", sa.String(10), nullable=True),
        sa.Column("avatar", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "servers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.Column("owner_id", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "user_servers",
        sa.Column(
            "user_id", sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "server_id", sa.BigInteger(),
            sa.ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("xp", sa.Integer(), server_default="0"),
        sa.Column("level", sa.Integer(), server_default="1"),
        sa.Column("points", sa.Integer(), server_default="0"),
        sa.Column("total_messages", sa.Integer(), server_default="0"),
        sa.Column("total_voice_time", sa.Integer(), server_default="0"),
        sa.Column("profile_card", JsonType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_servers_server_xp", "user_servers", ["server_id", "xp"])

    op.create_table(
        "channel_configs",
        sa.Column("channel_id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "server_id", sa.BigInteger(),
            sa.ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("xp_enabled", sa.Boolean(), server_default=sa.true()),
        sa.Column("xp_multiplier", sa.Float(), server_default="1.0"),
        sa.Column("is_level_up_channel", sa.Boolean(), server_default=sa.false()),
    )
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("server_id", sa.BigInteger(), nullable=False),
        sa.Column("channel_id", sa.BigInteger(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("xp_gained", sa.Integer(), server_default="0"),
        sa.Column("metadata", JsonType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_user_server", "activity_logs", ["user_id", "server_id"])

    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("server_id", sa.BigInteger(), nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column("rarity", sa.String(20), server_default="common"),
    )
    op.create_table(
        "user_achievements",
        sa.Column("user_id", sa.BigInteger(), primary_key=True),
        sa.Column("server_id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "achievement_id", sa.Integer(),
            sa.ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_achievements")
    op.drop_table("achievements")
    op.drop_index("ix_activity_logs_user_server", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("channel_configs")
    op.drop_index("ix_user_servers_server_xp", table_name="user_servers")
    op.drop_table("user_servers")
    op.drop_table("servers")
    op.drop_table("users")
