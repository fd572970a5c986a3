from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable


ChangeCallback = Callable[[dict[str, Any]], None]


class ChangeSubscription(ABC):
    @abstractmethod
    async def unsubscribe(self) -> None:
        raise NotImplementedError


class ChangeFeedPort(ABC):
    @abstractmethod
    async def subscribe(
        self,
        channel: str,
        schema: str,
        table: str,
        callback: ChangeCallback,
    ) -> ChangeSubscription:
        """
        Subscribe to insert, update and delete events on one table.
        The callback runs on the event loop for every event.
        Raises SubscriptionError when the channel cannot be established.
        """
        raise NotImplementedError
