"""
Kindroid Bots - Lifecycle Manager
Starts and stops every configured bot identity from one process.
"""

import asyncio
from typing import Callable, List, Optional

import logger as log
from bot_instance import BotInstance
from config import BotConfig
from discord_utils import ConversationFetcher
from loop_guard import LoopGuard
from prometheus_metrics import metrics_manager
from providers import KindroidProvider
from state import SharedState


class BotManager:
    """Owns the shared state and the set of running bot identities.

    One bot failing to start or stop never affects the others.
    """

    def __init__(self, provider: Optional[KindroidProvider] = None,
                 state: Optional[SharedState] = None,
                 fetcher: Optional[ConversationFetcher] = None,
                 bot_factory: Callable[..., BotInstance] = BotInstance):
        self.state = state or SharedState()
        self.fetcher = fetcher or ConversationFetcher()
        self.provider = provider or KindroidProvider()
        self.loop_guard = LoopGuard(self.state)
        self._bot_factory = bot_factory

    def _create_bot(self, config: BotConfig) -> BotInstance:
        return self._bot_factory(
            config, self.state, self.fetcher, self.provider, loop_guard=self.loop_guard
        )

    async def _start_one(self, config: BotConfig) -> Optional[BotInstance]:
        """Start a single bot; a failure is logged and reported as None."""
        try:
            bot = self._create_bot(config)
            await bot.start()
            return bot
        except Exception as e:
            log.exception(f"Failed to initialize bot {config.id}", e)
            metrics_manager.record_error(config.id, "startup")
            return None

    async def start_all(self, configs: List[BotConfig]) -> List[BotInstance]:
        """Start every configured bot concurrently and return the ones that came up."""
        log.startup(f"Initializing {len(configs)} bot(s)...")

        results = await asyncio.gather(*[self._start_one(cfg) for cfg in configs])
        started = [bot for bot in results if bot is not None]

        metrics_manager.set_active_bots(self.state.active_count())
        if len(started) == len(configs):
            log.ok(f"Successfully initialized {len(started)} out of {len(configs)} bots")
        else:
            log.warn(f"Successfully initialized {len(started)} out of {len(configs)} bots")
        return started

    async def _shutdown_one(self, bot_id: str, bot: BotInstance):
        try:
            await bot.close()
            log.info(f"Bot {bot_id} shutdown successfully")
        except Exception as e:
            log.exception(f"Error shutting down bot {bot_id}", e)
            metrics_manager.record_error(bot_id, "shutdown")

    async def shutdown_all(self):
        """Close every live bot, then drop identity-scoped state."""
        log.info("Shutting down all bots...")

        bots = list(self.state.active_bots.items())
        await asyncio.gather(*[self._shutdown_one(bot_id, bot) for bot_id, bot in bots])

        self.state.clear_identity_state()
        self.fetcher.clear()
        metrics_manager.set_active_bots(0)

    def active_count(self) -> int:
        """Number of bots currently logged in."""
        return self.state.active_count()

    async def wait_until_disconnected(self):
        """Wait until every live bot's gateway connection has ended."""
        bots = list(self.state.active_bots.values())
        await asyncio.gather(*[bot.wait_closed() for bot in bots])
