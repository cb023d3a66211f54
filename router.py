"""
Kindroid Bots - Message Router
Decides how a bot answers an admitted message and delivers the AI reply.
"""

import discord

import logger as log
from config import BotConfig
from constants import APOLOGY_MESSAGE, HISTORY_FETCH_LIMIT, HISTORY_CACHE_TTL
from discord_utils import ConversationFetcher, send_typing, truncate_for_discord
from eligibility import DestinationKind, classify_destination
from prometheus_metrics import metrics_manager
from providers import KindroidProvider
from state import SharedState


def is_addressed(message: discord.Message, me) -> bool:
    """True if the message @mentions the bot or contains one of its names.

    In a guild the member's display name (server nickname) counts as well as
    the account's own display name.
    """
    if me is None:
        return False
    if any(getattr(user, "id", None) == me.id for user in message.mentions):
        return True

    names = [getattr(me, "display_name", None) or getattr(me, "name", "")]
    guild = getattr(message, "guild", None)
    member = getattr(guild, "me", None) if guild else None
    if member is not None:
        names.append(getattr(member, "display_name", None))

    content = (message.content or "").lower()
    return any(name.lower() in content for name in names if name)


class MessageRouter:
    """Routes one bot identity's admitted messages to Kindroid and back.

    Addressed messages (mention or name) get a reply that quotes the
    trigger; everything else gets a plain message in the channel. DMs are
    always answered as replies.
    """

    def __init__(self, config: BotConfig, state: SharedState,
                 fetcher: ConversationFetcher, provider: KindroidProvider):
        self.config = config
        self.state = state
        self.fetcher = fetcher
        self.provider = provider

    @property
    def name(self) -> str:
        return self.config.id

    async def route(self, message: discord.Message, me):
        """Answer an admitted, eligible message. Never raises."""
        if classify_destination(message.channel) is DestinationKind.DM:
            await self.handle_direct(message)
            return

        addressed = is_addressed(message, me)
        log.debug(
            f"Responding to '{message.content[:50]}' ({'addressed' if addressed else 'ambient'})",
            self.name
        )
        await self._respond(message, addressed)

    async def handle_direct(self, message: discord.Message):
        """Answer a direct message, counting it first."""
        counter = self.state.record_dm(self.config.id, message.author.id)
        log.debug(f"DM #{counter.message_count} from {message.author.id}", self.name)
        await self._respond(message, addressed=True)

    async def _respond(self, message: discord.Message, addressed: bool):
        """Fetch context, call the backend and deliver the result."""
        try:
            await send_typing(message.channel, self.name)

            conversation = await self.fetcher.fetch_recent(
                message.channel, HISTORY_FETCH_LIMIT, HISTORY_CACHE_TTL
            )
            if not conversation:
                log.debug("No text in recent history, nothing to answer", self.name)
                return

            result = await self.provider.complete(
                self.config.share_code, conversation, self.config.enable_filter
            )

            # Rate limited: stay quiet, as if the bot chose not to answer
            if result.is_rate_limited:
                log.debug("Rate limited, dropping response", self.name)
                metrics_manager.record_rate_limited(self.name)
                return

            await self._deliver(message, result.text, addressed)
        except Exception as e:
            where = "DM" if classify_destination(message.channel) is DestinationKind.DM else f"channel {message.channel.id}"
            log.exception(f"Error responding in {where}", e, self.name)
            metrics_manager.record_error(self.name, "delivery")
            try:
                await self._deliver(message, APOLOGY_MESSAGE, addressed)
            except Exception as send_error:
                log.error(f"Could not send apology: {send_error}", self.name)

    async def _deliver(self, message: discord.Message, text: str, addressed: bool):
        """Reply to the trigger when addressed, otherwise post into the channel."""
        text = truncate_for_discord(text)
        if addressed:
            await message.reply(text)
            metrics_manager.record_response(self.name, "reply")
        else:
            await message.channel.send(text)
            metrics_manager.record_response(self.name, "send")
