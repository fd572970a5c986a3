from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from clinic.application.exceptions import AuthError, PersistenceError, SubscriptionError
from clinic.application.ports.change_feed import ChangeFeedPort, ChangeSubscription


class RealtimeBridge:
    """
    Holds at most one change-feed subscription on the appointments table and
    turns every event into a reload. Event payloads are never read.

    Usage:
        async with RealtimeBridge(feed, store.fetch_all, ...):
            ...
    """

    def __init__(
        self,
        feed: ChangeFeedPort,
        reload: Callable[[], Awaitable[Any]],
        channel: str = "appointments_changes",
        schema: str = "public",
        table: str = "appointments",
    ) -> None:
        self._feed = feed
        self._reload = reload
        self._channel = channel
        self._schema = schema
        self._table = table
        self._subscription: ChangeSubscription | None = None
        self._active = False
        self._pending: set[asyncio.Task[None]] = set()
        self._logger = logging.getLogger(__name__)

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None

    async def start(self) -> bool:
        """Open the subscription. Returns False if the channel could not be established."""
        if self._subscription is not None:
            self._logger.info("Realtime bridge already started", extra={"channel": self._channel})
            return True
        self._active = True
        try:
            self._subscription = await self._feed.subscribe(
                self._channel, self._schema, self._table, self._on_change
            )
        except SubscriptionError as e:
            # no push updates; the view only changes on manual refresh
            self._logger.warning(
                "Realtime subscription failed", extra={"channel": self._channel, "error": str(e)}
            )
            return False
        finally:
            if self._subscription is None:
                self._active = False
        self._logger.info("Realtime subscription open", extra={"channel": self._channel})
        return True

    async def stop(self) -> None:
        self._active = False
        subscription, self._subscription = self._subscription, None
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if subscription is None:
            return
        try:
            await subscription.unsubscribe()
        except SubscriptionError as e:
            self._logger.warning(
                "Realtime unsubscribe failed", extra={"channel": self._channel, "error": str(e)}
            )
        else:
            self._logger.info("Realtime subscription closed", extra={"channel": self._channel})

    async def flush(self) -> None:
        """Wait for reloads already triggered by events."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def __aenter__(self) -> "RealtimeBridge":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _on_change(self, payload: dict[str, Any]) -> None:
        if not self._active:
            # late event between stop() and the remote unsubscribe ack
            return
        self._logger.debug("Realtime event received", extra={"channel": self._channel})
        task = asyncio.get_running_loop().create_task(self._resync())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _resync(self) -> None:
        try:
            await self._reload()
        except (PersistenceError, AuthError) as e:
            self._logger.error(
                "Reload after realtime event failed", extra={"channel": self._channel, "error": str(e)}
            )
