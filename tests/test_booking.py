"""
Tests for public booking intake.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from pydantic import ValidationError

from clinic.application.dto.booking_request import BookingRequestDTO
from clinic.application.exceptions import PersistenceError
from clinic.application.use_cases.submit_booking import SubmitBookingUseCase
from clinic.domain.entities.appointment import AppointmentStatus
from clinic.infrastructure.memory.memory_backend import MemoryAppointmentRepository, MemoryBackend


class FailingInsertRepository(MemoryAppointmentRepository):
    async def insert(self, row):
        raise PersistenceError("insert failed")


def _request(**overrides) -> BookingRequestDTO:
    payload = {
        "full_name": "Maria Lopez",
        "email": "maria@example.com",
        "phone": "+90 555 111 2233",
        "service": "implant",
        "message": "Afternoons work best",
        "preferred_date": "2024-07-01",
    }
    payload.update(overrides)
    return BookingRequestDTO(**payload)


def test_valid_request_is_stored_as_pending():
    backend = MemoryBackend()
    uc = SubmitBookingUseCase(MemoryAppointmentRepository(backend))

    appointment = asyncio.run(uc.execute(_request()))

    assert appointment.status is AppointmentStatus.pending
    assert appointment.preferred_date == date(2024, 7, 1)
    assert appointment.id
    assert backend.rows("appointments")[0]["status"] == "pending"


def test_insert_publishes_change_event():
    backend = MemoryBackend()
    events: list[str] = []
    backend.subscribers["appointments"] = [("test", lambda payload: events.append(payload["eventType"]))]
    uc = SubmitBookingUseCase(MemoryAppointmentRepository(backend))

    asyncio.run(uc.execute(_request()))

    assert events == ["INSERT"]


def test_short_phone_is_rejected():
    with pytest.raises(ValidationError):
        _request(phone="12345")


def test_invalid_email_is_rejected():
    with pytest.raises(ValidationError):
        _request(email="not-an-email")


def test_one_letter_name_is_rejected():
    with pytest.raises(ValidationError):
        _request(full_name=" M ")


def test_missing_service_and_date_are_rejected():
    with pytest.raises(ValidationError):
        _request(service="")
    with pytest.raises(ValidationError):
        _request(preferred_date="")


def test_blank_message_becomes_none():
    assert _request(message="   ").message is None
    assert _request(message=None).message is None


def test_insert_failure_propagates():
    uc = SubmitBookingUseCase(FailingInsertRepository(MemoryBackend()))

    with pytest.raises(PersistenceError):
        asyncio.run(uc.execute(_request()))
