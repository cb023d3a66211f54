"""
Kindroid Bots - Shared State
Process-wide, in-memory state shared by every bot identity.
Nothing here is persisted; it lives only as long as the process.
"""

import time
from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bot_instance import BotInstance


@dataclass
class ChainState:
    """A run of consecutive bot-authored messages in one channel."""
    consecutive_count: int = 0
    last_author_id: str = ""
    last_activity_at: float = 0.0


@dataclass
class DMSessionCount:
    """How many direct messages one identity has exchanged with one user."""
    message_count: int = 0
    last_message_at: float = 0.0


def dm_key(bot_id: str, user_id) -> str:
    """Composite key for a (bot identity, remote user) pair."""
    return f"{bot_id}-{user_id}"


class SharedState:
    """Context object owning the chain, DM counter and active-bot maps.

    Created by the lifecycle manager and handed to every bot instance, so
    loop detection sees all identities posting into the same channel.

    Every read-modify-write below completes without awaiting, so handlers
    running on the event loop cannot interleave mid-update for a key.
    """

    def __init__(self):
        self.bot_chains: Dict[str, ChainState] = {}       # channel_id -> chain
        self.dm_counts: Dict[str, DMSessionCount] = {}    # "bot-user" -> counter
        self.active_bots: Dict[str, "BotInstance"] = {}   # bot_id -> live instance

    # --- DM Session Counter ---

    def record_dm(self, bot_id: str, user_id, now: Optional[float] = None) -> DMSessionCount:
        """Increment the DM counter for this pair, creating it on first contact."""
        now = time.time() if now is None else now
        key = dm_key(bot_id, user_id)

        current = self.dm_counts.get(key) or DMSessionCount()
        updated = DMSessionCount(message_count=current.message_count + 1, last_message_at=now)
        self.dm_counts[key] = updated
        return updated

    def get_dm_count(self, bot_id: str, user_id) -> Optional[DMSessionCount]:
        """Get the DM counter for a pair, or None if they never talked."""
        return self.dm_counts.get(dm_key(bot_id, user_id))

    # --- Active Identity Registry ---

    def register_bot(self, bot_id: str, bot: "BotInstance"):
        """Mark an identity as live."""
        self.active_bots[bot_id] = bot

    def unregister_bot(self, bot_id: str):
        """Forget an identity."""
        self.active_bots.pop(bot_id, None)

    def active_count(self) -> int:
        """Number of live identities."""
        return len(self.active_bots)

    def clear_identity_state(self):
        """Drop identity-scoped state on shutdown. Chain state is channel-scoped and kept."""
        self.active_bots.clear()
        self.dm_counts.clear()
