"""
tests/test_activity_service.py — Activity → XP Persistence
===========================================================
"""

from __future__ import annotations

from sqlalchemy import select

from wangbot.database.engine import get_session
from wangbot.database.models import ActivityLog, ChannelConfig, Server, User
from wangbot.services.activity_service import (
    MemberInfo,
    ServerInfo,
    record_message,
    record_voice_session,
)
from wangbot.services.progression_service import get_user_server_data

MEMBER = MemberInfo(id=1, username="wang", discriminator="0", avatar=None)
SERVER = ServerInfo(id=500, name="Test Server", icon=None, owner_id=99)
CHANNEL = 42


class TestRecordMessage:
    def test_first_message_creates_rows(self, db_engine, cfg):
        result = record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL)

        assert result.xp_gained == cfg.message_xp
        assert result.total_xp == cfg.message_xp
        assert not result.leveled_up

        record = get_user_server_data(db_engine, MEMBER.id, SERVER.id)
        assert record.total_messages == 1
        assert record.xp == cfg.message_xp
        with get_session(db_engine) as session:
            assert session.get(User, MEMBER.id).username == "wang"
            assert session.get(Server, SERVER.id).owner_id == 99
            logs = session.scalars(select(ActivityLog)).all()
            assert len(logs) == 1
            assert logs[0].type == "message"
            assert logs[0].xp_gained == cfg.message_xp

    def test_level_up_awards_points(self, db_engine, cfg):
        # 27 messages × 15 XP = 405 XP → level 2
        results = [record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL) for _ in range(27)]
        assert results[-1].leveled_up
        assert results[-1].new_level == 2
        assert sum(r.leveled_up for r in results) == 1

        record = get_user_server_data(db_engine, MEMBER.id, SERVER.id)
        assert record.level == 2
        assert record.points == cfg.points_per_level
        assert record.total_messages == 27

    def test_disabled_channel_counts_message_without_xp(self, db_engine, cfg):
        record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL)
        with get_session(db_engine) as session:
            session.add(ChannelConfig(channel_id=CHANNEL, server_id=SERVER.id, xp_enabled=False))

        result = record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL)
        assert result.xp_gained == 0
        record = get_user_server_data(db_engine, MEMBER.id, SERVER.id)
        assert record.total_messages == 2
        assert record.xp == cfg.message_xp

    def test_channel_multiplier(self, db_engine, cfg):
        with get_session(db_engine) as session:
            session.add(Server(id=SERVER.id, name=SERVER.name))
            session.add(ChannelConfig(channel_id=CHANNEL, server_id=SERVER.id, xp_multiplier=2.0))
        result = record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL)
        assert result.xp_gained == cfg.message_xp * 2

    def test_username_refreshed(self, db_engine, cfg):
        record_message(db_engine, cfg, MEMBER, SERVER, CHANNEL)
        renamed = MemberInfo(id=MEMBER.id, username="wang2", discriminator="0", avatar="abc")
        record_message(db_engine, cfg, renamed, SERVER, CHANNEL)
        with get_session(db_engine) as session:
            user = session.get(User, MEMBER.id)
            assert user.username == "wang2"
            assert user.avatar == "abc"


class TestRecordVoiceSession:
    def test_whole_minutes_credited(self, db_engine, cfg):
        result = record_voice_session(db_engine, cfg, MEMBER, SERVER, CHANNEL, 185)
        assert result.xp_gained == 3 * cfg.voice_xp_per_minute

        record = get_user_server_data(db_engine, MEMBER.id, SERVER.id)
        assert record.total_voice_time == 185
        assert record.total_messages == 0

        with get_session(db_engine) as session:
            log = session.scalars(select(ActivityLog)).one()
            assert log.type == "voice"
            assert log.metadata_json["seconds"] == 185

    def test_short_session_no_xp(self, db_engine, cfg):
        result = record_voice_session(db_engine, cfg, MEMBER, SERVER, None, 30)
        assert result.xp_gained == 0
        assert get_user_server_data(db_engine, MEMBER.id, SERVER.id).total_voice_time == 30
