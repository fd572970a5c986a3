from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RemoteSession:
    access_token: str
    user: dict[str, Any]
    refresh_token: str | None = None
    expires_at: float | None = None


class AuthPort(ABC):
    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> RemoteSession:
        """Sign in with email and password. Raises AuthError on rejection."""
        raise NotImplementedError

    @abstractmethod
    async def sign_out(self) -> None:
        """Sign out the current session. Raises AuthError on failure."""
        raise NotImplementedError

    @abstractmethod
    async def get_session(self) -> RemoteSession | None:
        """Return the current session, or None when there is none. Raises AuthError on failure."""
        raise NotImplementedError
