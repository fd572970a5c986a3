from __future__ import annotations

import logging

from clinic.application.dto.booking_request import BookingRequestDTO
from clinic.application.exceptions import PersistenceError
from clinic.application.ports.appointment_repository import AppointmentRepositoryPort
from clinic.domain.entities.appointment import Appointment, AppointmentStatus


class SubmitBookingUseCase:
    def __init__(self, repository: AppointmentRepositoryPort) -> None:
        self._repository = repository
        self._logger = logging.getLogger(__name__)

    async def execute(self, request: BookingRequestDTO) -> Appointment:
        row = request.to_row()
        row["status"] = AppointmentStatus.pending.value
        try:
            stored = await self._repository.insert(row)
        except PersistenceError as e:
            self._logger.error("Booking request not stored", extra={"error": str(e), "service": request.service})
            raise
        appointment = Appointment.from_row(stored)
        self._logger.info(
            "Booking request stored",
            extra={"appointment_id": appointment.id, "service": appointment.service},
        )
        return appointment
