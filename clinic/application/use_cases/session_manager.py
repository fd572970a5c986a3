from __future__ import annotations

import logging
import secrets
from dataclasses import replace

from clinic.application.exceptions import AuthError, NotAuthenticatedError
from clinic.application.ports.auth import AuthPort
from clinic.domain.entities.session import AdminUser, SessionState


class SessionManager:
    """
    Authenticated/unauthenticated state of the current admin operator.

    is_loading starts True and is cleared by the first check_auth() call.
    Nothing sets it back to True afterwards.
    """

    def __init__(self, auth: AuthPort) -> None:
        self._auth = auth
        self._state = SessionState()
        self._access_token: str | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def user(self) -> AdminUser | None:
        return self._state.user

    @property
    def access_token(self) -> str | None:
        return self._access_token

    async def check_auth(self) -> SessionState:
        """Restore an existing remote session. Never raises; failures end unauthenticated."""
        try:
            session = await self._auth.get_session()
        except Exception as e:
            self._logger.error("Auth check failed", extra={"error": str(e)})
            session = None

        user = None
        if session is not None and session.user:
            try:
                user = AdminUser.from_remote(session.user)
            except (KeyError, TypeError) as e:
                self._logger.error("Auth check returned an unusable user", extra={"error": str(e)})

        if user is not None:
            self._state = SessionState(is_authenticated=True, is_loading=False, user=user)
            self._access_token = session.access_token
            self._logger.info("Session restored", extra={"email": user.email})
        else:
            self._state = SessionState(is_authenticated=False, is_loading=False, user=None)
            self._access_token = None
            self._logger.info("No active session")
        return self._state

    async def login(self, email: str, password: str) -> AdminUser:
        try:
            session = await self._auth.sign_in_with_password(email, password)
        except AuthError:
            self._logger.warning("Login rejected", extra={"email": email})
            raise

        if not session.user:
            raise AuthError("Sign-in succeeded without a user")
        try:
            user = AdminUser.from_remote(session.user)
        except (KeyError, TypeError) as e:
            raise AuthError(f"Sign-in returned an unusable user: {e}") from e
        self._state = replace(self._state, is_authenticated=True, user=user)
        self._access_token = session.access_token
        self._logger.info("Logged in", extra={"email": user.email})
        return user

    async def logout(self) -> None:
        try:
            await self._auth.sign_out()
        except AuthError:
            # operator stays signed in locally until sign-out is confirmed
            self._logger.error("Logout failed", extra={"email": self._state.user.email if self._state.user else None})
            raise
        self._state = replace(self._state, is_authenticated=False, user=None)
        self._access_token = None
        self._logger.info("Logged out")

    def require_authenticated(self) -> AdminUser:
        if not self._state.is_authenticated or self._state.user is None:
            raise NotAuthenticatedError("An authenticated admin session is required")
        return self._state.user

    def holds_token(self, token: str | None) -> bool:
        """True when token is the access token of the signed-in operator."""
        if not token or not self._state.is_authenticated or not self._access_token:
            return False
        return secrets.compare_digest(token.encode(), self._access_token.encode())
