"""
wangbot.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- users              — Discord accounts (snowflake PK)
- servers            — Discord guilds the bot has seen
- user_servers       — Per-(user, server) progression: XP, level, points,
                       message/voice counters, stored card style
- channel_configs    — Per-channel XP switches and multipliers
- activity_logs      — Append-only activity journal
- achievements       — Achievement definitions (global or per server)
- user_achievements  — Earned achievements
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Wangbot ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ActivityType(enum.StrEnum):
    """Kinds of activity that earn XP."""
    MESSAGE = "message"
    VOICE = "voice"


# ---------------------------------------------------------------------------
# Users — one row per Discord account
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    discriminator: Mapped[str | None] = mapped_column(String(10), default=None)
    avatar: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    servers: Mapped[list[UserServer]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.username!r}>"


# ---------------------------------------------------------------------------
# Servers — one row per guild
# ---------------------------------------------------------------------------
class Server(Base):
    __tablename__ = "servers"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(255), default=None)
    owner_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    members: Mapped[list[UserServer]] = relationship(
        back_populates="server", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Server id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# UserServer — the progression record
# ---------------------------------------------------------------------------
class UserServer(Base):
    """XP, level, points and activity counters for one member of one server."""
    __tablename__ = "user_servers"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    server_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True
    )
    xp: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)
    points: Mapped[int] = mapped_column(Integer, default=0)
    total_messages: Mapped[int] = mapped_column(Integer, default=0)
    total_voice_time: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    profile_card: Mapped[dict | None] = mapped_column(JsonType, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped[User] = relationship(back_populates="servers")
    server: Mapped[Server] = relationship(back_populates="members")

    __table_args__ = (
        Index("ix_user_servers_server_xp", "server_id", "xp"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserServer user={self.user_id} server={self.server_id} "
            f"xp={self.xp} lvl={self.level}>"
        )


# ---------------------------------------------------------------------------
# ChannelConfig — per-channel XP switches
# ---------------------------------------------------------------------------
class ChannelConfig(Base):
    __tablename__ = "channel_configs"

    channel_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    server_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True
    )
    xp_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    xp_multiplier: Mapped[float] = mapped_column(Float, default=1.0)
    is_level_up_channel: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<ChannelConfig channel={self.channel_id} xp={self.xp_enabled}>"


# ---------------------------------------------------------------------------
# ActivityLog — append-only journal
# ---------------------------------------------------------------------------
class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    server_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    xp_gained: Mapped[int] = mapped_column(Integer, default=0)
    metadata_json: Mapped[dict] = mapped_column("metadata", JsonType, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_activity_logs_user_server", "user_id", "server_id"),
    )


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------
class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    server_id: Mapped[int | None] = mapped_column(BigInteger, default=None)  # None = global
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(100), default=None)
    rarity: Mapped[str] = mapped_column(String(20), default="common")

    def __repr__(self) -> str:
        return f"<Achievement id={self.id} name={self.name!r} rarity={self.rarity}>"


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    server_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    achievement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    achievement: Mapped[Achievement] = relationship()
