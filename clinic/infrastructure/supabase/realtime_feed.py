from __future__ import annotations

import logging
from typing import Any

from realtime import AsyncRealtimeChannel, AsyncRealtimeClient, RealtimeSubscribeStates

from clinic.application.exceptions import SubscriptionError
from clinic.application.ports.change_feed import ChangeCallback, ChangeFeedPort, ChangeSubscription
from clinic.infrastructure.supabase.supabase_client import SupabaseClient


class RealtimeSubscription(ChangeSubscription):
    def __init__(self, client: AsyncRealtimeClient, channel: AsyncRealtimeChannel, name: str) -> None:
        self._client = client
        self._channel = channel
        self._name = name
        self._closed = False

    async def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._channel.unsubscribe()
        except Exception as e:
            raise SubscriptionError(f"Unsubscribe from {self._name} failed: {e}") from e
        finally:
            await _close_quietly(self._client)


class RealtimeChangeFeed(ChangeFeedPort):
    """
    Postgres change notifications over the hosted realtime websocket.

    Each subscription opens its own socket so tearing it down never affects
    another subscriber.
    """

    def __init__(self, client: SupabaseClient) -> None:
        self._rest = client
        self._url = client.url.replace("https://", "wss://", 1).replace("http://", "ws://", 1) + "/realtime/v1"
        self._logger = logging.getLogger(__name__)

    async def subscribe(
        self,
        channel: str,
        schema: str,
        table: str,
        callback: ChangeCallback,
    ) -> ChangeSubscription:
        socket = AsyncRealtimeClient(self._url, self._rest.anon_key)
        try:
            await socket.connect()
            if self._rest.access_token:
                await socket.set_auth(self._rest.access_token)
            realtime_channel = socket.channel(channel)
            realtime_channel.on_postgres_changes("*", callback=callback, table=table, schema=schema)
            await realtime_channel.subscribe(self._status_logger(channel))
        except Exception as e:
            await _close_quietly(socket)
            raise SubscriptionError(f"Could not subscribe to {channel}: {e}") from e
        return RealtimeSubscription(socket, realtime_channel, channel)

    def _status_logger(self, channel: str):
        def on_status(status: RealtimeSubscribeStates, error: Any = None) -> None:
            if status == RealtimeSubscribeStates.SUBSCRIBED:
                self._logger.info("Realtime channel joined", extra={"channel": channel})
            else:
                # a dropped channel looks like "no changes" to the bridge
                self._logger.warning(
                    "Realtime channel state changed",
                    extra={"channel": channel, "event": str(status), "error": str(error) if error else None},
                )

        return on_status


async def _close_quietly(socket: AsyncRealtimeClient) -> None:
    try:
        await socket.close()
    except Exception:
        logging.getLogger(__name__).debug("Realtime socket close failed", exc_info=True)
