"""Tests for BotManager bulk startup and shutdown."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot_instance import BotInstance, BotStatus
from config import BotConfig
from lifecycle import BotManager


def _configs(n: int):
    return [BotConfig(id=f"bot{i}", token=f"tok.en.{i}", share_code=f"code{i}") for i in range(n)]


async def _never_ready():
    await asyncio.Event().wait()


def _factory(bad_tokens=(), bad_closes=(), bad_gateways=()):
    """BotInstance factory with a fake Discord client."""
    created = []

    def factory(config, state, fetcher, provider, loop_guard=None):
        client = MagicMock()
        client.user = MagicMock(id=hash(config.id))
        client.login = AsyncMock(
            side_effect=discord.LoginFailure("Improper token") if config.token in bad_tokens else None
        )
        client.connect = AsyncMock(
            side_effect=discord.PrivilegedIntentsRequired(None) if config.id in bad_gateways else None
        )
        client.wait_until_ready = AsyncMock(side_effect=_never_ready if config.id in bad_gateways else None)
        client.close = AsyncMock(
            side_effect=RuntimeError("close failed") if config.id in bad_closes else None
        )
        bot = BotInstance(config, state, fetcher, provider, loop_guard=loop_guard, client=client)
        created.append(bot)
        return bot

    factory.created = created
    return factory


def _manager(factory) -> BotManager:
    return BotManager(provider=MagicMock(), bot_factory=factory)


class TestStartAll:
    @pytest.mark.asyncio
    async def test_all_start(self):
        manager = _manager(_factory())
        started = await manager.start_all(_configs(3))
        assert len(started) == 3
        assert manager.active_count() == 3
        await manager.shutdown_all()

    @pytest.mark.asyncio
    async def test_one_bad_credential_excluded(self):
        manager = _manager(_factory(bad_tokens={"tok.en.1"}))

        started = await manager.start_all(_configs(4))

        assert len(started) == 3
        assert {bot.name for bot in started} == {"bot0", "bot2", "bot3"}
        assert set(manager.state.active_bots) == {"bot0", "bot2", "bot3"}
        await manager.shutdown_all()

    @pytest.mark.asyncio
    async def test_gateway_rejection_excluded(self):
        factory = _factory(bad_gateways={"bot1"})
        manager = _manager(factory)

        started = await manager.start_all(_configs(3))

        assert {bot.name for bot in started} == {"bot0", "bot2"}
        assert set(manager.state.active_bots) == {"bot0", "bot2"}
        assert factory.created[1].status is BotStatus.FAILED_STARTUP
        await manager.shutdown_all()

    @pytest.mark.asyncio
    async def test_all_fail(self):
        manager = _manager(_factory(bad_tokens={"tok.en.0", "tok.en.1"}))
        assert await manager.start_all(_configs(2)) == []
        assert manager.active_count() == 0

    @pytest.mark.asyncio
    async def test_factory_error_is_isolated(self):
        good = _factory()

        def flaky(config, *args, **kwargs):
            if config.id == "bot0":
                raise ValueError("bad config")
            return good(config, *args, **kwargs)

        manager = _manager(flaky)
        started = await manager.start_all(_configs(2))
        assert [bot.name for bot in started] == ["bot1"]
        await manager.shutdown_all()

    @pytest.mark.asyncio
    async def test_bots_share_one_state(self):
        factory = _factory()
        manager = _manager(factory)
        await manager.start_all(_configs(2))
        first, second = factory.created
        assert first.state is second.state is manager.state
        assert first.loop_guard is second.loop_guard
        await manager.shutdown_all()

    @pytest.mark.asyncio
    async def test_empty_config(self):
        manager = _manager(_factory())
        assert await manager.start_all([]) == []


class TestShutdownAll:
    @pytest.mark.asyncio
    async def test_clears_registry_and_dm_counts(self):
        manager = _manager(_factory())
        await manager.start_all(_configs(2))
        manager.state.record_dm("bot0", 7)

        await manager.shutdown_all()

        assert manager.active_count() == 0
        assert manager.state.dm_counts == {}

    @pytest.mark.asyncio
    async def test_teardown_error_does_not_block_others(self):
        factory = _factory(bad_closes={"bot1"})
        manager = _manager(factory)
        await manager.start_all(_configs(3))
        manager.state.record_dm("bot2", 7)

        await manager.shutdown_all()

        for bot in factory.created:
            bot.client.close.assert_awaited_once()
        assert manager.active_count() == 0
        assert manager.state.dm_counts == {}

    @pytest.mark.asyncio
    async def test_chain_state_survives_shutdown(self):
        manager = _manager(_factory())
        await manager.start_all(_configs(1))
        manager.loop_guard.admit(42, 1, now=1000.0)

        await manager.shutdown_all()

        assert manager.loop_guard.get(42) is not None

    @pytest.mark.asyncio
    async def test_shutdown_with_nothing_running(self):
        manager = _manager(_factory())
        await manager.shutdown_all()
        assert manager.active_count() == 0
