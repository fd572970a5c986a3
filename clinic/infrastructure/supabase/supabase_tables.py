from __future__ import annotations

import logging
from typing import Any

import httpx

from clinic.application.exceptions import PersistenceError
from clinic.application.ports.appointment_repository import AppointmentRepositoryPort
from clinic.application.ports.blog_repository import BlogRepositoryPort
from clinic.infrastructure.supabase.supabase_client import SupabaseClient, error_text


_RETURN_ROWS = "return=representation"


class _SupabaseTable:
    def __init__(self, client: SupabaseClient, table: str) -> None:
        self._client = client
        self._table = table
        self._logger = logging.getLogger(__name__)

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        try:
            resp = await self._client.rest_request(
                method, self._table, params=params, json=json, prefer=prefer
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {self._table} failed: {e}") from e
        if resp.status_code >= 400:
            raise PersistenceError(f"{method} {self._table} failed ({resp.status_code}): {error_text(resp)}")
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def _list_newest_first(self) -> list[dict[str, Any]]:
        rows = await self._request("GET", params={"select": "*", "order": "created_at.desc"})
        return list(rows or [])


class SupabaseAppointmentRepository(_SupabaseTable, AppointmentRepositoryPort):
    def __init__(self, client: SupabaseClient, table: str = "appointments") -> None:
        super().__init__(client, table)

    async def list_all(self) -> list[dict[str, Any]]:
        return await self._list_newest_first()

    async def update_status(
        self,
        appointment_id: str,
        status: str,
        expected_status: str | None = None,
    ) -> dict[str, Any] | None:
        params = {"id": f"eq.{appointment_id}"}
        if expected_status is not None:
            params["status"] = f"eq.{expected_status}"
        rows = await self._request("PATCH", params=params, json={"status": status}, prefer=_RETURN_ROWS)
        return rows[0] if rows else None

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", json=[row], prefer=_RETURN_ROWS)
        if not rows:
            raise PersistenceError(f"Insert into {self._table} returned no row")
        return rows[0]


class SupabaseBlogRepository(_SupabaseTable, BlogRepositoryPort):
    def __init__(self, client: SupabaseClient, table: str = "blogs") -> None:
        super().__init__(client, table)

    async def list_all(self) -> list[dict[str, Any]]:
        return await self._list_newest_first()

    async def get(self, post_id: str) -> dict[str, Any] | None:
        rows = await self._request("GET", params={"select": "*", "id": f"eq.{post_id}"})
        return rows[0] if rows else None

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", json=[row], prefer=_RETURN_ROWS)
        if not rows:
            raise PersistenceError(f"Insert into {self._table} returned no row")
        return rows[0]

    async def update(self, post_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        rows = await self._request(
            "PATCH", params={"id": f"eq.{post_id}"}, json=changes, prefer=_RETURN_ROWS
        )
        return rows[0] if rows else None

    async def delete(self, post_id: str) -> bool:
        rows = await self._request("DELETE", params={"id": f"eq.{post_id}"}, prefer=_RETURN_ROWS)
        return bool(rows)
