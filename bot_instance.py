"""
Kindroid Bots - Bot Instance
Encapsulates a single Discord bot with its own client, Kindroid persona, and lifecycle.
"""

import asyncio
import sys
from enum import Enum
from typing import Optional

import discord

import logger as log
from config import BotConfig
from discord_utils import ConversationFetcher
from eligibility import DestinationKind, can_respond, classify_destination
from loop_guard import LoopGuard
from prometheus_metrics import metrics_manager
from providers import KindroidProvider
from router import MessageRouter
from state import SharedState


class BotStatus(Enum):
    """Lifecycle of one bot identity."""
    UNSTARTED = "unstarted"
    CONNECTING = "connecting"
    LIVE = "live"
    FAILED_STARTUP = "failed_startup"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


def _make_client() -> discord.Client:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.dm_messages = True
    return discord.Client(intents=intents)


class BotInstance:
    """Encapsulates a single Discord bot with its own client and persona."""

    def __init__(self, config: BotConfig, state: SharedState, fetcher: ConversationFetcher,
                 provider: KindroidProvider, loop_guard: Optional[LoopGuard] = None,
                 client: Optional[discord.Client] = None):
        self.config = config
        self.name = config.id
        self.state = state
        self.loop_guard = loop_guard or LoopGuard(state)
        self.router = MessageRouter(config, state, fetcher, provider)
        self.client = client or _make_client()
        self.status = BotStatus.UNSTARTED
        self._connection_task: Optional[asyncio.Task] = None

        self._setup_events()

    def _setup_events(self):
        """Register event handlers."""
        self.client.event(self.on_ready)
        self.client.event(self.on_message)
        self.client.event(self.on_error)

    # --- Events ---

    async def on_ready(self):
        log.online(f"Logged in as {self.client.user}", self.name)

    async def on_message(self, message: discord.Message):
        """Admission pipeline: loop guard, eligibility gate, then routing."""
        me = self.client.user
        # Never answer ourselves
        if me is not None and message.author.id == me.id:
            return

        kind = classify_destination(message.channel)
        metrics_manager.record_message(self.name, 'dm' if kind is DestinationKind.DM else 'server')

        if message.author.bot:
            if kind is DestinationKind.DM:
                log.debug(f"Ignoring DM from bot {message.author.id}", self.name)
                return
            if not self.loop_guard.admit(message.channel.id, message.author.id):
                log.debug(f"Bot chain limit reached in channel {message.channel.id}", self.name)
                metrics_manager.record_loop_guard_denial(self.name)
                return
        else:
            # A human spoke: any bot chain in this channel is over
            self.loop_guard.clear(message.channel.id)

        member = message.guild.me if message.guild else me
        if not can_respond(message.channel, member, self.name):
            metrics_manager.record_permission_denial(self.name)
            return

        await self.router.route(message, me)

    async def on_error(self, event_method: str, *args, **kwargs):
        """Log errors raised inside event handlers instead of printing tracebacks."""
        exc = sys.exc_info()[1]
        if exc is not None:
            log.exception(f"Error in {event_method} handler", exc, self.name)
        else:
            log.error(f"Error in {event_method} handler", self.name)
        metrics_manager.record_error(self.name, "gateway")

    # --- Lifecycle ---

    async def start(self):
        """Log in, open the gateway and register once the bot is ready.

        Raises if login fails or the gateway connection ends before the ready
        event; the bot is only registered after both succeed.
        """
        self.status = BotStatus.CONNECTING
        try:
            await self.client.login(self.config.token)
        except Exception:
            await self._fail_startup()
            raise

        self._connection_task = asyncio.create_task(self._run_connection())
        ready = asyncio.ensure_future(self.client.wait_until_ready())
        done, _ = await asyncio.wait(
            {self._connection_task, ready}, return_when=asyncio.FIRST_COMPLETED
        )

        # e.g. PrivilegedIntentsRequired when message content is not enabled
        failed = self._connection_task in done and self._connection_task.exception() is not None
        if failed or ready not in done:
            ready.cancel()
            await asyncio.gather(ready, return_exceptions=True)
            await self._fail_startup()
            if failed:
                raise self._connection_task.exception()
            raise ConnectionError("Gateway closed before the bot became ready")

        self.state.register_bot(self.config.id, self)
        self.status = BotStatus.LIVE

    async def _fail_startup(self):
        self.status = BotStatus.FAILED_STARTUP
        try:
            await self.client.close()  # release the HTTP session
        except Exception as e:
            log.debug(f"Cleanup after failed startup raised: {e}", self.name)

    async def _run_connection(self):
        """Hold the gateway connection open until the client is closed.

        Failures before the bot is live propagate to start(); afterwards a
        terminal failure takes the bot out of the active set.
        """
        try:
            await self.client.connect(reconnect=True)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self.status is BotStatus.CONNECTING:
                raise
            if self.status is not BotStatus.LIVE:
                log.debug(f"Connection ended during shutdown: {e}", self.name)
                return
            log.exception("Gateway connection lost", e, self.name)
            metrics_manager.record_error(self.name, "gateway")
            self.state.unregister_bot(self.config.id)
            self.status = BotStatus.STOPPED
            metrics_manager.set_active_bots(self.state.active_count())
            try:
                await self.client.close()
            except Exception as close_error:
                log.debug(f"Cleanup after lost connection raised: {close_error}", self.name)

    async def wait_closed(self):
        """Wait until the gateway connection ends."""
        if self._connection_task:
            await asyncio.gather(self._connection_task, return_exceptions=True)

    async def close(self):
        """Close the bot connection."""
        self.status = BotStatus.SHUTTING_DOWN
        try:
            await self.client.close()
        finally:
            if self._connection_task and not self._connection_task.done():
                self._connection_task.cancel()
                await asyncio.gather(self._connection_task, return_exceptions=True)
            self.state.unregister_bot(self.config.id)
            self.status = BotStatus.STOPPED
