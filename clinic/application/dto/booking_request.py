from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator


class BookingRequestDTO(BaseModel):
    full_name: str = Field(min_length=2)
    email: EmailStr
    phone: str = Field(min_length=10)
    service: str = Field(min_length=1)
    message: str | None = None
    preferred_date: date

    @field_validator("full_name", "phone", "service", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("message", mode="before")
    @classmethod
    def _blank_message_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_row(self) -> dict[str, Any]:
        return {
            "full_name": self.full_name,
            "email": str(self.email),
            "phone": self.phone,
            "service": self.service,
            "message": self.message,
            "preferred_date": self.preferred_date.isoformat(),
        }
