from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AdminUser:
    id: str
    email: str
    name: str
    avatar_url: str | None = None

    @staticmethod
    def from_remote(user: dict[str, Any]) -> "AdminUser":
        email = str(user.get("email") or "")
        metadata = user.get("user_metadata") or {}
        return AdminUser(
            id=str(user["id"]),
            email=email,
            name=metadata.get("name") or email.split("@")[0],
            avatar_url=metadata.get("avatar_url"),
        )


@dataclass(frozen=True)
class SessionState:
    is_authenticated: bool = False
    is_loading: bool = True
    user: AdminUser | None = None
