from __future__ import annotations

import logging
from typing import Any, Callable

from clinic.application.exceptions import InvalidTransitionError, PersistenceError
from clinic.application.ports.appointment_repository import AppointmentRepositoryPort
from clinic.application.use_cases.session_manager import SessionManager
from clinic.domain.entities.appointment import TERMINAL_STATUSES, Appointment, AppointmentStatus


Snapshot = tuple[Appointment, ...]
SnapshotListener = Callable[[Snapshot], None]


class AppointmentStore:
    """
    Client-side copy of the appointments table.

    The collection is only ever replaced wholesale by a successful fetch. Status
    changes are written remotely and then followed by a full reload; nothing is
    patched locally. Concurrent fetches are not ordered: the last one to
    resolve wins.
    """

    def __init__(self, repository: AppointmentRepositoryPort, session: SessionManager) -> None:
        self._repository = repository
        self._session = session
        self._appointments: Snapshot = ()
        self._in_flight = 0
        self._listeners: list[SnapshotListener] = []
        self._logger = logging.getLogger(__name__)

    @property
    def appointments(self) -> Snapshot:
        return self._appointments

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def get(self, appointment_id: str) -> Appointment | None:
        return next((a for a in self._appointments if a.id == appointment_id), None)

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def fetch_all(self) -> Snapshot:
        self._session.require_authenticated()

        self._in_flight += 1
        try:
            try:
                rows = await self._repository.list_all()
            except PersistenceError as e:
                self._logger.error("Failed to load appointments", extra={"error": str(e)})
                raise
            snapshot = _to_snapshot(rows)
        finally:
            self._in_flight -= 1

        self._appointments = snapshot
        self._logger.info("Appointments loaded", extra={"count": len(snapshot)})
        self._notify()
        return snapshot

    async def set_status(self, appointment_id: str, new_status: AppointmentStatus | str) -> Snapshot:
        self._session.require_authenticated()

        try:
            target = AppointmentStatus(new_status)
        except ValueError as e:
            raise InvalidTransitionError(f"Unknown appointment status: {new_status}") from e
        if target not in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Cannot move an appointment to {target.value}")

        current = self.get(appointment_id)
        if current is not None and current.status is not AppointmentStatus.pending:
            raise InvalidTransitionError(
                f"Appointment {appointment_id} is already {current.status.value}"
            )

        self._logger.info(
            "Updating appointment status",
            extra={"appointment_id": appointment_id, "status": target.value},
        )
        try:
            updated = await self._repository.update_status(
                appointment_id,
                target.value,
                expected_status=AppointmentStatus.pending.value,
            )
        except PersistenceError as e:
            self._logger.error(
                "Failed to update appointment status",
                extra={"appointment_id": appointment_id, "error": str(e)},
            )
            raise

        if updated is None:
            if current is None:
                raise PersistenceError(f"Appointment {appointment_id} does not exist")
            # local view said pending, remote row had already moved on
            raise InvalidTransitionError(
                f"Appointment {appointment_id} is no longer pending"
            )

        return await self.fetch_all()

    def close(self) -> None:
        self._listeners.clear()

    def _notify(self) -> None:
        snapshot = self._appointments
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self._logger.exception("Appointment listener failed")


def _to_snapshot(rows: list[dict[str, Any]]) -> Snapshot:
    try:
        appointments = [Appointment.from_row(row) for row in rows or []]
    except (KeyError, ValueError, TypeError) as e:
        raise PersistenceError(f"Malformed appointment row: {e}") from e
    # sorted() is stable with reverse=True, so ties keep the remote order
    return tuple(sorted(appointments, key=lambda a: a.created_at, reverse=True))
