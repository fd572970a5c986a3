from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BlogRepositoryPort(ABC):
    @abstractmethod
    async def list_all(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, post_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def update(self, post_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        """Returns the updated row, or None when the post does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, post_id: str) -> bool:
        """Returns True if a row was deleted."""
        raise NotImplementedError
