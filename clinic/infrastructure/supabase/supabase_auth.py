from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import httpx

from clinic.application.exceptions import AuthError
from clinic.application.ports.auth import AuthPort, RemoteSession
from clinic.infrastructure.supabase.supabase_client import SupabaseClient, error_text


# refresh a little before the token actually expires
_EXPIRY_MARGIN_SECONDS = 10


class SupabaseAuth(AuthPort):
    """
    Password auth against the hosted auth endpoints.

    The current session is kept on the shared client (its access token signs
    every table request) and, when session_file is set, written to disk so a
    restarted process can restore it.
    """

    def __init__(self, client: SupabaseClient, session_file: str | None = None) -> None:
        self._client = client
        self._session_file = Path(session_file) if session_file else None
        self._session: RemoteSession | None = None
        self._logger = logging.getLogger(__name__)

    async def sign_in_with_password(self, email: str, password: str) -> RemoteSession:
        try:
            resp = await self._client.auth_request(
                "POST",
                "token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Sign-in request failed: {e}") from e
        if resp.status_code >= 400:
            raise AuthError(error_text(resp))

        session = _session_from_token_response(resp.json())
        self._set_session(session)
        return session

    async def sign_out(self) -> None:
        session = self._session
        if session is not None:
            try:
                resp = await self._client.auth_request("POST", "logout", token=session.access_token)
            except httpx.HTTPError as e:
                raise AuthError(f"Sign-out request failed: {e}") from e
            # 401/404 mean the session is already gone server side
            if resp.status_code >= 400 and resp.status_code not in (401, 404):
                raise AuthError(error_text(resp))
        self._set_session(None)

    async def get_session(self) -> RemoteSession | None:
        session = self._session or self._load()
        if session is None:
            return None
        if session.expires_at is not None and session.expires_at - _EXPIRY_MARGIN_SECONDS <= time.time():
            if not session.refresh_token:
                self._set_session(None)
                return None
            session = await self._refresh(session.refresh_token)
        self._set_session(session)
        return session

    async def _refresh(self, refresh_token: str) -> RemoteSession | None:
        try:
            resp = await self._client.auth_request(
                "POST",
                "token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": refresh_token},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Session refresh request failed: {e}") from e
        if resp.status_code in (400, 401):
            self._logger.info("Stored session could not be refreshed", extra={"error": error_text(resp)})
            return None
        if resp.status_code >= 400:
            raise AuthError(error_text(resp))
        return _session_from_token_response(resp.json())

    def _set_session(self, session: RemoteSession | None) -> None:
        self._session = session
        self._client.access_token = session.access_token if session else None
        self._save(session)

    def _load(self) -> RemoteSession | None:
        if self._session_file is None or not self._session_file.exists():
            return None
        try:
            with open(self._session_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return RemoteSession(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
                expires_at=data.get("expires_at"),
                user=data.get("user") or {},
            )
        except (json.JSONDecodeError, KeyError, TypeError, IOError) as e:
            self._logger.warning("Ignoring unreadable session file", extra={"error": str(e)})
            return None

    def _save(self, session: RemoteSession | None) -> None:
        if self._session_file is None:
            return
        if session is None:
            self._session_file.unlink(missing_ok=True)
            return
        self._session_file.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._session_file.with_suffix(".json.tmp")
        data = {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_at": session.expires_at,
            "user": session.user,
        }
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self._session_file)
        except IOError as e:
            temp_path.unlink(missing_ok=True)
            self._logger.warning("Could not persist session", extra={"error": str(e)})


def _session_from_token_response(data: dict[str, Any]) -> RemoteSession:
    try:
        access_token = data["access_token"]
    except (KeyError, TypeError) as e:
        raise AuthError("Auth response did not include an access token") from e
    expires_at = data.get("expires_at")
    if expires_at is None and data.get("expires_in") is not None:
        expires_at = time.time() + float(data["expires_in"])
    return RemoteSession(
        access_token=access_token,
        refresh_token=data.get("refresh_token"),
        expires_at=float(expires_at) if expires_at is not None else None,
        user=data.get("user") or {},
    )
