"""
Kindroid Bots - Eligibility Gate
Checks whether a bot is allowed to post into a channel before responding.
"""

from enum import Enum
from typing import Dict, Tuple

import discord

import logger as log


class DestinationKind(Enum):
    """Where a message can be sent."""
    DM = "dm"
    GUILD_TEXT = "guild_text"
    THREAD = "thread"
    UNSUPPORTED = "unsupported"


_KIND_BY_CHANNEL_TYPE = {
    discord.ChannelType.private: DestinationKind.DM,
    discord.ChannelType.text: DestinationKind.GUILD_TEXT,
    discord.ChannelType.news: DestinationKind.GUILD_TEXT,
    discord.ChannelType.voice: DestinationKind.GUILD_TEXT,  # voice channels have text chat
    discord.ChannelType.stage_voice: DestinationKind.GUILD_TEXT,
    discord.ChannelType.public_thread: DestinationKind.THREAD,
    discord.ChannelType.private_thread: DestinationKind.THREAD,
    discord.ChannelType.news_thread: DestinationKind.THREAD,
}

_BASE_PERMISSIONS = ("view_channel", "send_messages", "read_message_history")

# Permission flags needed per destination kind (DMs need no introspection)
REQUIRED_PERMISSIONS: Dict[DestinationKind, Tuple[str, ...]] = {
    DestinationKind.DM: (),
    DestinationKind.GUILD_TEXT: _BASE_PERMISSIONS,
    DestinationKind.THREAD: _BASE_PERMISSIONS + ("send_messages_in_threads",),
}


def classify_destination(channel) -> DestinationKind:
    """Map a Discord channel to its destination kind."""
    return _KIND_BY_CHANNEL_TYPE.get(getattr(channel, "type", None), DestinationKind.UNSUPPORTED)


def has_permissions(permissions, required: Tuple[str, ...]) -> bool:
    """True if every named permission flag is set."""
    if permissions is None:
        return False
    return all(getattr(permissions, name, False) is True for name in required)


def can_respond(channel, member, bot_name: str = None) -> bool:
    """Check if the bot can respond in a channel.

    Never raises: any failure while looking up permissions is logged and
    treated as "not allowed".
    """
    try:
        kind = classify_destination(channel)
        if kind is DestinationKind.DM:
            return True
        if kind is DestinationKind.UNSUPPORTED or member is None:
            return False

        permissions = channel.permissions_for(member)
        allowed = has_permissions(permissions, REQUIRED_PERMISSIONS[kind])
        if not allowed:
            log.debug(f"Missing permissions in channel {channel.id}", bot_name)
        return allowed
    except Exception as e:
        log.error(f"Error checking permissions: {e}", bot_name)
        return False
