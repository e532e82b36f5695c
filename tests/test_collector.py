"""Tests for the timed ComponentCollector."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from utils.collector import ComponentCollector
from tests.fakes import make_interaction


class TestComponentCollector:
    """Tests for collecting, timers and the terminal callback."""

    @pytest.mark.asyncio
    async def test_collect_runs_handlers(self):
        collector = ComponentCollector()
        handler = AsyncMock()
        collector.on_collect(handler)
        interaction = make_interaction()

        assert await collector.collect(interaction) is True
        handler.assert_awaited_once_with(interaction)
        assert collector.collected == 1
        collector.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        collector = ComponentCollector()
        on_end = MagicMock(return_value=None)
        collector.on_end(on_end)

        collector.stop()
        collector.stop("time")

        on_end.assert_called_once_with("user")
        assert collector.ended is True
        assert collector.end_reason == "user"

    @pytest.mark.asyncio
    async def test_collect_after_stop_is_rejected(self):
        collector = ComponentCollector()
        handler = AsyncMock()
        collector.on_collect(handler)
        collector.stop()

        assert await collector.collect(make_interaction()) is False
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_time_limit_ends_collector(self):
        collector = ComponentCollector(time=20)
        assert await asyncio.wait_for(collector.wait(), timeout=2) == "time"

    @pytest.mark.asyncio
    async def test_collect_resets_idle_timer(self):
        collector = ComponentCollector(idle=150)
        await asyncio.sleep(0.1)
        await collector.collect(make_interaction())
        await asyncio.sleep(0.1)
        assert collector.ended is False

        assert await asyncio.wait_for(collector.wait(), timeout=2) == "idle"

    @pytest.mark.asyncio
    async def test_reset_timer_extends_time_limit(self):
        collector = ComponentCollector(time=150)
        await asyncio.sleep(0.1)
        collector.reset_timer()
        await asyncio.sleep(0.1)
        assert collector.ended is False
        collector.stop()

    @pytest.mark.asyncio
    async def test_async_end_handler_is_awaited_by_wait(self):
        collector = ComponentCollector()
        finished = []

        async def on_end(reason):
            await asyncio.sleep(0)
            finished.append(reason)

        collector.on_end(on_end)
        collector.stop("user")

        assert await collector.wait() == "user"
        assert finished == ["user"]

    @pytest.mark.asyncio
    async def test_failing_end_handler_is_logged(self, caplog):
        collector = ComponentCollector(name="buttons")

        async def on_end(reason):
            raise RuntimeError("edit failed")

        collector.on_end(on_end)
        with caplog.at_level(logging.ERROR, logger="utils.collector"):
            collector.stop()
            assert await collector.wait() == "user"
            await asyncio.sleep(0)

        records = [r for r in caplog.records if "buttons end handler failed" in r.getMessage()]
        assert len(records) == 1
        assert records[0].exc_info[1].args == ("edit failed",)
