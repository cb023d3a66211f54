"""Shared fakes for Discord objects."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from config import BotConfig
from providers import AIResult
from state import SharedState


BOT_USER_ID = 999
CHANNEL_ID = 100


def make_user(user_id: int, name: str = "user", *, bot: bool = False) -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.name = name
    user.display_name = name
    user.bot = bot
    return user


def make_channel(channel_type=discord.ChannelType.text, channel_id: int = CHANNEL_ID,
                 permissions=None) -> MagicMock:
    channel = MagicMock()
    channel.id = channel_id
    channel.type = channel_type
    channel.send = AsyncMock()
    channel.typing = AsyncMock()
    channel.permissions_for = MagicMock(return_value=permissions)
    return channel


def full_permissions() -> discord.Permissions:
    return discord.Permissions(
        view_channel=True,
        send_messages=True,
        read_message_history=True,
        send_messages_in_threads=True,
    )


def make_message(content: str = "hello", *, author=None, channel=None, mentions=None,
                 guild=True) -> MagicMock:
    msg = MagicMock()
    msg.content = content
    msg.author = author or make_user(1234, "alice")
    msg.channel = channel or make_channel(permissions=full_permissions())
    msg.mentions = mentions or []
    msg.reply = AsyncMock()
    if guild and msg.channel.type is not discord.ChannelType.private:
        msg.guild = MagicMock()
        msg.guild.me = make_user(BOT_USER_ID, "Luna", bot=True)
    else:
        msg.guild = None
    return msg


@pytest.fixture
def state():
    return SharedState()


@pytest.fixture
def bot_config():
    return BotConfig(id="luna", token="a.b.c", share_code="SHARE123", enable_filter=True)


@pytest.fixture
def me():
    return make_user(BOT_USER_ID, "Luna", bot=True)


@pytest.fixture
def fetcher():
    fake = MagicMock()
    fake.fetch_recent = AsyncMock(return_value=[
        {"username": "alice", "text": "hello", "timestamp": "2026-01-01T00:00:00+00:00"}
    ])
    return fake


@pytest.fixture
def provider():
    fake = MagicMock()
    fake.complete = AsyncMock(return_value=AIResult(kind="ok", text="Hi there!"))
    return fake
