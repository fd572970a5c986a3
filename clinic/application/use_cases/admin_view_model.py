from __future__ import annotations

from collections import Counter
from typing import Iterable

from clinic.application.use_cases.appointment_store import AppointmentStore, Snapshot
from clinic.domain.entities.appointment import Appointment, AppointmentStatus


STATUS_FILTER_ALL = "all"


def normalize_status_filter(status_filter: str | None) -> str:
    """Lower-cased status filter, "all" when empty. Raises ValueError for unknown statuses."""
    normalized = (status_filter or "").strip().lower() or STATUS_FILTER_ALL
    if normalized != STATUS_FILTER_ALL:
        AppointmentStatus(normalized)
    return normalized


def filter_appointments(
    appointments: Iterable[Appointment],
    search_term: str = "",
    status_filter: str = STATUS_FILTER_ALL,
) -> list[Appointment]:
    """
    Case-insensitive substring match on name, email or phone, combined with an
    exact status match unless the filter is "all". Input order is kept.
    """
    needle = (search_term or "").casefold()
    wanted = normalize_status_filter(status_filter)

    out: list[Appointment] = []
    for appointment in appointments:
        if wanted != STATUS_FILTER_ALL and appointment.status.value != wanted:
            continue
        if needle and not any(
            needle in field.casefold()
            for field in (appointment.full_name, appointment.email, appointment.phone)
        ):
            continue
        out.append(appointment)
    return out


class AdminViewModel:
    def __init__(self, store: AppointmentStore) -> None:
        self._store = store
        self.search_term = ""
        self.status_filter = STATUS_FILTER_ALL

    def update(self, search_term: str | None = None, status_filter: str | None = None) -> None:
        if status_filter is not None:
            self.status_filter = normalize_status_filter(status_filter)
        if search_term is not None:
            self.search_term = search_term

    @property
    def snapshot(self) -> Snapshot:
        return self._store.appointments

    @property
    def is_loading(self) -> bool:
        return self._store.is_loading

    def visible(self) -> list[Appointment]:
        return filter_appointments(self._store.appointments, self.search_term, self.status_filter)

    def counts(self) -> dict[str, int]:
        counter = Counter(a.status.value for a in self._store.appointments)
        counts = {status.value: counter.get(status.value, 0) for status in AppointmentStatus}
        counts[STATUS_FILTER_ALL] = len(self._store.appointments)
        return counts

    async def confirm(self, appointment_id: str) -> Snapshot:
        return await self._store.set_status(appointment_id, AppointmentStatus.confirmed)

    async def cancel(self, appointment_id: str) -> Snapshot:
        return await self._store.set_status(appointment_id, AppointmentStatus.cancelled)

    async def set_status(self, appointment_id: str, status: AppointmentStatus | str) -> Snapshot:
        return await self._store.set_status(appointment_id, status)
