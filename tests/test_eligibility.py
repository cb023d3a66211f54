"""Tests for the eligibility gate."""

from unittest.mock import MagicMock

import discord
import pytest

from eligibility import DestinationKind, can_respond, classify_destination

from conftest import full_permissions, make_channel, make_user


MEMBER = make_user(999, "Luna", bot=True)


class TestClassify:
    @pytest.mark.parametrize("channel_type, kind", [
        (discord.ChannelType.private, DestinationKind.DM),
        (discord.ChannelType.text, DestinationKind.GUILD_TEXT),
        (discord.ChannelType.news, DestinationKind.GUILD_TEXT),
        (discord.ChannelType.public_thread, DestinationKind.THREAD),
        (discord.ChannelType.private_thread, DestinationKind.THREAD),
        (discord.ChannelType.category, DestinationKind.UNSUPPORTED),
        (discord.ChannelType.forum, DestinationKind.UNSUPPORTED),
    ])
    def test_channel_types(self, channel_type, kind):
        assert classify_destination(make_channel(channel_type)) is kind


class TestCanRespond:
    def test_dm_always_allowed_without_lookup(self):
        channel = make_channel(discord.ChannelType.private)
        channel.permissions_for.side_effect = AssertionError("should not be called")
        assert can_respond(channel, MEMBER) is True

    def test_text_channel_with_all_permissions(self):
        channel = make_channel(permissions=full_permissions())
        assert can_respond(channel, MEMBER) is True

    @pytest.mark.parametrize("missing", ["view_channel", "send_messages", "read_message_history"])
    def test_text_channel_missing_one_permission(self, missing):
        perms = full_permissions()
        setattr(perms, missing, False)
        channel = make_channel(permissions=perms)
        assert can_respond(channel, MEMBER) is False

    def test_text_channel_does_not_need_thread_permission(self):
        perms = full_permissions()
        perms.send_messages_in_threads = False
        assert can_respond(make_channel(permissions=perms), MEMBER) is True

    def test_thread_requires_thread_permission(self):
        perms = full_permissions()
        perms.send_messages_in_threads = False
        channel = make_channel(discord.ChannelType.public_thread, permissions=perms)
        assert can_respond(channel, MEMBER) is False

    def test_thread_with_all_permissions(self):
        channel = make_channel(discord.ChannelType.private_thread, permissions=full_permissions())
        assert can_respond(channel, MEMBER) is True

    def test_null_permissions_denied(self):
        channel = make_channel(permissions=None)
        assert can_respond(channel, MEMBER) is False

    def test_lookup_failure_denied(self):
        channel = make_channel()
        channel.permissions_for.side_effect = RuntimeError("boom")
        assert can_respond(channel, MEMBER) is False

    def test_unsupported_channel_denied(self):
        channel = make_channel(discord.ChannelType.category, permissions=full_permissions())
        assert can_respond(channel, MEMBER) is False

    def test_missing_member_denied(self):
        channel = make_channel(permissions=full_permissions())
        assert can_respond(channel, None) is False

    def test_channel_without_type_denied(self):
        channel = MagicMock(spec=[])
        assert can_respond(channel, MEMBER) is False
