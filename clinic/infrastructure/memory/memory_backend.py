from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from clinic.application.exceptions import AuthError
from clinic.application.ports.appointment_repository import AppointmentRepositoryPort
from clinic.application.ports.auth import AuthPort, RemoteSession
from clinic.application.ports.blog_repository import BlogRepositoryPort
from clinic.application.ports.change_feed import ChangeCallback, ChangeFeedPort, ChangeSubscription


class MemoryBackend:
    """
    Process-local stand-in for the hosted service: users, tables and a change
    feed. Every write publishes an INSERT/UPDATE/DELETE event to subscribers of
    that table, like the hosted realtime service does.
    """

    def __init__(self) -> None:
        self.users: dict[str, tuple[str, dict[str, Any]]] = {}
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.subscribers: dict[str, list[tuple[str, ChangeCallback]]] = {}
        self.current_session: RemoteSession | None = None
        self._logger = logging.getLogger(__name__)

    def add_user(self, email: str, password: str, name: str | None = None, avatar_url: str | None = None) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if name:
            metadata["name"] = name
        if avatar_url:
            metadata["avatar_url"] = avatar_url
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": metadata}
        self.users[email.lower()] = (password, user)
        return user

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert without publishing a change event."""
        stored = _with_defaults(row)
        self.rows(table).append(stored)
        return dict(stored)

    def publish(self, table: str, event: str, new: dict[str, Any] | None, old: dict[str, Any] | None) -> None:
        payload = {
            "eventType": event,
            "table": table,
            "schema": "public",
            "new": dict(new or {}),
            "old": dict(old or {}),
            "commit_timestamp": _now_iso(),
        }
        self._logger.debug("Publishing change", extra={"table": table, "event": event})
        for _channel, callback in list(self.subscribers.get(table, [])):
            callback(payload)


class MemoryAuth(AuthPort):
    def __init__(self, backend: MemoryBackend) -> None:
        self._backend = backend

    async def sign_in_with_password(self, email: str, password: str) -> RemoteSession:
        entry = self._backend.users.get((email or "").lower())
        if entry is None or entry[0] != password:
            raise AuthError("Invalid login credentials")
        session = RemoteSession(access_token=uuid.uuid4().hex, user=dict(entry[1]))
        self._backend.current_session = session
        return session

    async def sign_out(self) -> None:
        self._backend.current_session = None

    async def get_session(self) -> RemoteSession | None:
        return self._backend.current_session


class _MemoryTable:
    def __init__(self, backend: MemoryBackend, table: str) -> None:
        self._backend = backend
        self._table = table

    def _rows(self) -> list[dict[str, Any]]:
        return self._backend.rows(self._table)

    def _find(self, row_id: str) -> dict[str, Any] | None:
        return next((r for r in self._rows() if r["id"] == row_id), None)

    async def list_all(self) -> list[dict[str, Any]]:
        rows = sorted(self._rows(), key=lambda r: r["created_at"], reverse=True)
        return [dict(r) for r in rows]

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        stored = _with_defaults(row)
        self._rows().append(stored)
        self._backend.publish(self._table, "INSERT", stored, None)
        return dict(stored)

    def _apply(self, row: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
        old = dict(row)
        row.update(changes)
        self._backend.publish(self._table, "UPDATE", row, old)
        return dict(row)


class MemoryAppointmentRepository(_MemoryTable, AppointmentRepositoryPort):
    def __init__(self, backend: MemoryBackend, table: str = "appointments") -> None:
        super().__init__(backend, table)

    async def update_status(
        self,
        appointment_id: str,
        status: str,
        expected_status: str | None = None,
    ) -> dict[str, Any] | None:
        row = self._find(appointment_id)
        if row is None:
            return None
        if expected_status is not None and row.get("status") != expected_status:
            return None
        return self._apply(row, {"status": status})


class MemoryBlogRepository(_MemoryTable, BlogRepositoryPort):
    def __init__(self, backend: MemoryBackend, table: str = "blogs") -> None:
        super().__init__(backend, table)

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        row = dict(row)
        row.setdefault("created_at", _now_iso())
        row.setdefault("updated_at", row["created_at"])
        return await super().insert(row)

    async def get(self, post_id: str) -> dict[str, Any] | None:
        row = self._find(post_id)
        return dict(row) if row else None

    async def update(self, post_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        row = self._find(post_id)
        if row is None:
            return None
        return self._apply(row, changes)

    async def delete(self, post_id: str) -> bool:
        row = self._find(post_id)
        if row is None:
            return False
        self._rows().remove(row)
        self._backend.publish(self._table, "DELETE", None, row)
        return True


class MemorySubscription(ChangeSubscription):
    def __init__(self, backend: MemoryBackend, table: str, entry: tuple[str, ChangeCallback]) -> None:
        self._backend = backend
        self._table = table
        self._entry = entry

    async def unsubscribe(self) -> None:
        entries = self._backend.subscribers.get(self._table, [])
        if self._entry in entries:
            entries.remove(self._entry)


class MemoryChangeFeed(ChangeFeedPort):
    def __init__(self, backend: MemoryBackend) -> None:
        self._backend = backend

    async def subscribe(
        self,
        channel: str,
        schema: str,
        table: str,
        callback: ChangeCallback,
    ) -> ChangeSubscription:
        entry = (channel, callback)
        self._backend.subscribers.setdefault(table, []).append(entry)
        return MemorySubscription(self._backend, table, entry)


def _with_defaults(row: dict[str, Any]) -> dict[str, Any]:
    stored = dict(row)
    stored.setdefault("id", str(uuid.uuid4()))
    stored.setdefault("created_at", _now_iso())
    return stored


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
