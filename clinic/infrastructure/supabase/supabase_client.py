from __future__ import annotations

import logging
from typing import Any

import httpx


class SupabaseClient:
    """
    Thin async HTTP client for the hosted project's REST endpoints.

    Requests carry the anon key as `apikey`. The bearer token is the signed-in
    operator's access token when there is one, otherwise the anon key, so row
    level security sees the operator.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url or not anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required for the Supabase backend")
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.access_token: str | None = None
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._logger = logging.getLogger(__name__)

    def headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def auth_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        token: str | None = None,
    ) -> httpx.Response:
        headers = self.headers()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await self._client.request(
            method, f"{self.url}/auth/v1/{path}", params=params, json=json, headers=headers
        )

    async def rest_request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        extra = {"Prefer": prefer} if prefer else None
        resp = await self._client.request(
            method, f"{self.url}/rest/v1/{table}", params=params, json=json, headers=self.headers(extra)
        )
        if resp.status_code >= 400:
            self._logger.error(
                "Supabase REST request failed",
                extra={"status": resp.status_code, "table": table, "error": error_text(resp)},
            )
        return resp

    async def aclose(self) -> None:
        await self._client.aclose()


def error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
            or body
        )
    return str(body)
