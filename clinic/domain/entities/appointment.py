from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


TERMINAL_STATUSES = frozenset({AppointmentStatus.confirmed, AppointmentStatus.cancelled})


@dataclass(frozen=True)
class Appointment:
    id: str
    full_name: str
    email: str
    phone: str
    service: str
    preferred_date: date
    status: AppointmentStatus
    created_at: datetime
    message: str | None = None

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Appointment":
        return Appointment(
            id=str(row["id"]),
            full_name=str(row.get("full_name") or ""),
            email=str(row.get("email") or ""),
            phone=str(row.get("phone") or ""),
            service=str(row.get("service") or ""),
            message=row.get("message"),
            preferred_date=_parse_date(row.get("preferred_date")),
            status=AppointmentStatus(row.get("status") or AppointmentStatus.pending.value),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "service": self.service,
            "message": self.message,
            "preferred_date": self.preferred_date.isoformat(),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }


def parse_timestamp(value: Any) -> datetime:
    """Parse a remote timestamp into an aware UTC datetime. Naive values are treated as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # timestamps are accepted too, only the date part is kept
    return date.fromisoformat(str(value)[:10])
