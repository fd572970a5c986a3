from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AppointmentRepositoryPort(ABC):
    @abstractmethod
    async def list_all(self) -> list[dict[str, Any]]:
        """All appointment rows, newest created_at first."""
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self,
        appointment_id: str,
        status: str,
        expected_status: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Set status on one row. When expected_status is given the update only
        applies if the row currently has that status.
        Returns the updated row, or None when no row matched.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it as stored (with id and created_at)."""
        raise NotImplementedError
