"""
Kindroid Bots - Loop Guard
Stops bots from replying to each other forever.

Bots may still mention each other in conversation: every time a *different*
bot speaks in a channel the chain grows by one hop, and once it reaches
MAX_BOT_CHAIN hops no bot answers another bot there until a human speaks
or the channel goes quiet for INACTIVITY_RESET_SECONDS.
"""

import time
from dataclasses import replace
from typing import Optional

from constants import MAX_BOT_CHAIN, INACTIVITY_RESET_SECONDS
from state import ChainState, SharedState


class LoopGuard:
    """Per-channel bot-to-bot chain tracker backed by SharedState."""

    def __init__(self, state: SharedState, max_chain: int = MAX_BOT_CHAIN,
                 inactivity_reset: float = INACTIVITY_RESET_SECONDS):
        self.state = state
        self.max_chain = max_chain
        self.inactivity_reset = inactivity_reset

    def admit(self, channel_id, author_id, now: Optional[float] = None) -> bool:
        """Decide whether a bot-authored message may be answered.

        Only call this for messages written by a bot. Once a channel hits the
        cap every bot message is denied until the inactivity window, measured
        from the last admitted message, has passed.
        """
        now = time.time() if now is None else now
        key = str(channel_id)
        author = str(author_id)

        stored = self.state.bot_chains.get(key)
        chain = replace(stored) if stored else ChainState()
        last_admitted_at = chain.last_activity_at

        if now - chain.last_activity_at > self.inactivity_reset:
            chain.consecutive_count = 0
            chain.last_author_id = ""

        if chain.consecutive_count >= self.max_chain:
            return False

        # Same bot repeating itself is not another hop
        if chain.last_author_id and chain.last_author_id != author:
            chain.consecutive_count += 1

        chain.last_author_id = author
        chain.last_activity_at = now

        if chain.consecutive_count >= self.max_chain:
            # Freeze at the cap; the denial does not restart the idle clock
            chain.last_activity_at = last_admitted_at
            self.state.bot_chains[key] = chain
            return False

        self.state.bot_chains[key] = chain
        return True

    def clear(self, channel_id):
        """A human spoke: forget the channel's chain."""
        self.state.bot_chains.pop(str(channel_id), None)

    def get(self, channel_id) -> Optional[ChainState]:
        """Current stored chain for a channel, if any."""
        return self.state.bot_chains.get(str(channel_id))
