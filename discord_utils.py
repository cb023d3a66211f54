"""
Kindroid Bots - Discord Utilities
Helper functions for Discord interactions.
"""

import time
from typing import Dict, List, Optional, Tuple

import discord

import logger as log
from constants import HISTORY_FETCH_LIMIT, HISTORY_CACHE_TTL, MAX_MESSAGE_LENGTH


def get_user_display_name(user: discord.User | discord.Member) -> str:
    """Get display name for a user."""
    if hasattr(user, 'display_name') and user.display_name:
        return user.display_name
    elif hasattr(user, 'global_name') and user.global_name:
        return user.global_name
    return user.name


def message_to_record(message: discord.Message) -> Optional[dict]:
    """Convert a Discord message into the record format the AI backend expects."""
    text = (message.clean_content or "").strip()
    if not text:
        return None
    return {
        "username": get_user_display_name(message.author),
        "text": text,
        "timestamp": message.created_at.isoformat(),
    }


class ConversationFetcher:
    """Fetches recent channel history, reusing results for a short time.

    Several bots usually answer in the same channel within seconds of each
    other, so one fetch per channel is shared by all of them.
    """

    def __init__(self):
        self._cache: Dict[int, Tuple[float, List[dict]]] = {}  # channel_id -> (fetched_at, records)

    async def fetch_recent(self, channel, limit: int = HISTORY_FETCH_LIMIT,
                           cache_ttl: float = HISTORY_CACHE_TTL) -> List[dict]:
        """Return up to `limit` recent messages, oldest first."""
        now = time.time()
        cached = self._cache.get(channel.id)
        if cached and now - cached[0] < cache_ttl:
            return list(cached[1])

        records = []
        async for msg in channel.history(limit=limit):
            record = message_to_record(msg)
            if record:
                records.append(record)

        # Discord returns newest first
        records.reverse()

        self._cache[channel.id] = (now, records)
        self._prune(now, cache_ttl)
        return list(records)

    def _prune(self, now: float, cache_ttl: float):
        """Drop expired cache entries."""
        for channel_id in [cid for cid, (at, _) in self._cache.items() if now - at >= cache_ttl]:
            del self._cache[channel_id]

    def clear(self):
        """Forget every cached conversation."""
        self._cache.clear()


async def send_typing(channel, bot_name: str = None):
    """Show the typing indicator once. Best effort: failures are only logged."""
    try:
        await channel.typing()
    except Exception as e:
        log.debug(f"Typing indicator failed: {e}", bot_name)


def truncate_for_discord(text: str) -> str:
    """Keep a message within Discord's length limit."""
    if len(text) <= MAX_MESSAGE_LENGTH:
        return text
    return text[:MAX_MESSAGE_LENGTH - 1] + "…"
