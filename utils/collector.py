# -*- coding: utf-8 -*-
"""
Timed component subscriptions.

A collector receives interactions routed to it by a view, keeps an absolute
(``time``) and an inactivity (``idle``) timer, and fires its end handlers exactly
once when either timer expires or ``stop()`` is called. Durations are in
milliseconds.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

import discord

logger = logging.getLogger(__name__)

CollectHandler = Callable[[discord.Interaction], Awaitable[Any]]
EndHandler = Callable[[str], Union[Awaitable[Any], Any]]


class ComponentCollector:
    """A cancellable subscription with a resettable timer and a terminal callback."""

    def __init__(self, *, time: Optional[int] = None, idle: Optional[int] = None, name: str = "collector"):
        self.name = name
        self.time = time
        self.idle = idle
        self.ended = False
        self.end_reason: Optional[str] = None
        self.collected = 0

        self._loop = asyncio.get_running_loop()
        self._collect_handlers: List[CollectHandler] = []
        self._end_handlers: List[EndHandler] = []
        self._tasks: Set[asyncio.Task] = set()
        self._ended_event = asyncio.Event()
        self._time_handle: Optional[asyncio.TimerHandle] = None
        self._idle_handle: Optional[asyncio.TimerHandle] = None

        self.reset_timer()

    def on_collect(self, handler: CollectHandler) -> CollectHandler:
        self._collect_handlers.append(handler)
        return handler

    def on_end(self, handler: EndHandler) -> EndHandler:
        self._end_handlers.append(handler)
        return handler

    def _schedule(self, delay_ms: int, reason: str) -> asyncio.TimerHandle:
        return self._loop.call_later(delay_ms / 1000, self.stop, reason)

    def reset_timer(self, *, time: Optional[int] = None, idle: Optional[int] = None) -> None:
        """Restarts both timers, falling back to the durations given at construction."""
        if self.ended:
            return

        if self._time_handle:
            self._time_handle.cancel()
            self._time_handle = None
        time = time if time is not None else self.time
        if time is not None:
            self._time_handle = self._schedule(time, "time")

        if self._idle_handle:
            self._idle_handle.cancel()
            self._idle_handle = None
        idle = idle if idle is not None else self.idle
        if idle is not None:
            self._idle_handle = self._schedule(idle, "idle")

    async def collect(self, interaction: discord.Interaction) -> bool:
        """Feeds an interaction to the collect handlers. Returns False once the collector has ended."""
        if self.ended:
            return False

        self.collected += 1
        if self.idle is not None:
            if self._idle_handle:
                self._idle_handle.cancel()
            self._idle_handle = self._schedule(self.idle, "idle")

        for handler in self._collect_handlers:
            await handler(interaction)
        return True

    def stop(self, reason: str = "user") -> None:
        if self.ended:
            return

        self.ended = True
        self.end_reason = reason
        self._ended_event.set()
        for handle in (self._time_handle, self._idle_handle):
            if handle:
                handle.cancel()
        self._time_handle = self._idle_handle = None
        logger.debug(f"{self.name} ended (reason: {reason}, collected: {self.collected})")

        for handler in self._end_handlers:
            result = handler(reason)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._end_task_done)

    def _end_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            error = task.exception()
            logger.error(f"{self.name} end handler failed: {error}", exc_info=error)

    async def wait(self) -> str:
        """Waits until the collector and every end handler it scheduled have finished."""
        await self._ended_event.wait()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        return self.end_reason
