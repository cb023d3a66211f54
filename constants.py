"""
Kindroid Bots - Constants
Centralized configuration constants to avoid magic numbers throughout the codebase.
"""

# =============================================================================
# ANTI-LOOP
# =============================================================================

MAX_BOT_CHAIN = 3                 # Max back-and-forth hops between bots in one channel
INACTIVITY_RESET_SECONDS = 600    # Idle gap that ends a bot chain (10 minutes)

# =============================================================================
# HISTORY
# =============================================================================

HISTORY_FETCH_LIMIT = 75          # Messages sent to the AI as conversation context
HISTORY_CACHE_TTL = 5.0           # Seconds a fetched conversation may be reused

# =============================================================================
# DISCORD
# =============================================================================

MAX_MESSAGE_LENGTH = 2000         # Discord's max message length

# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

APOLOGY_MESSAGE = (
    "Beep boop, something went wrong. "
    "Please contact the Kindroid owner if this keeps up!"
)
