# src/taskgrid/sync/remote.py

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from ..core.ports import TaskPayload, TokenSource
from ..tasks.task_store import Preferences

logger = logging.getLogger(__name__)

PREF_AUTH_TOKEN = "auth_token"


class RemoteError(RuntimeError):
    """Non-2xx answer (or unusable body) from the remote task store."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(RemoteError):
    """Login/registration rejected by the auth service."""


class TokenStore:
    """Bearer token kept in local preferences (survives restarts)."""

    def __init__(self, prefs: Preferences) -> None:
        self._prefs = prefs

    def get_token(self) -> str | None:
        tok = self._prefs.get(PREF_AUTH_TOKEN)
        return tok if isinstance(tok, str) and tok else None

    def save_token(self, token: str) -> None:
        self._prefs.set(PREF_AUTH_TOKEN, token)

    def clear_token(self) -> None:
        self._prefs.delete(PREF_AUTH_TOKEN)


def _timeout(seconds: float | None) -> httpx.Timeout:
    # Unset -> 5s.
    if seconds is None:
        return httpx.Timeout(5.0)
    return httpx.Timeout(seconds)


class _HttpBase:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = _timeout(timeout_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        error_cls: type[RemoteError] = RemoteError,
    ) -> Any:
        resp = await self._get_client().request(method, path, json=json, params=params, headers=headers)
        if resp.status_code < 200 or resp.status_code >= 300:
            detail = ""
            try:
                body = resp.json()
                if isinstance(body, dict):
                    detail = str(body.get("error") or "")
            except ValueError:
                detail = resp.text[:200]
            raise error_cls(
                f"{method} {path} failed: HTTP {resp.status_code} {detail}".strip(),
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls(f"{method} {path} returned invalid JSON", status_code=resp.status_code) from e


class RemoteTaskClient(_HttpBase):
    """
    HTTP client for the remote task store.

    Endpoints (relative to base_url):
      GET /ping, GET /tasks[?date=D], POST /tasks, PUT /tasks/{id},
      DELETE /tasks/{id}, POST /sync (protected: bearer token when available)
    """

    def __init__(
        self,
        base_url: str,
        *,
        tokens: TokenSource | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout_seconds=timeout_seconds, transport=transport)
        self._tokens = tokens

    def _auth_headers(self) -> dict[str, str]:
        token = self._tokens.get_token() if self._tokens is not None else None
        if not token:
            # Proceed unauthenticated; the server may reject the call.
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def ping(self) -> bool:
        await self._request("GET", "/ping")
        return True

    async def list_tasks(self, date: str | None = None) -> list[TaskPayload]:
        params = {"date": date} if date else None
        body = await self._request("GET", "/tasks", params=params)
        if not isinstance(body, list):
            raise RemoteError("GET /tasks did not return a list")
        return [row for row in body if isinstance(row, dict)]

    async def upsert_task(self, task: TaskPayload) -> TaskPayload:
        if not task.get("id"):
            raise ValueError("task with id required")
        body = await self._request("POST", "/tasks", json=task)
        return body if isinstance(body, dict) else dict(task)

    async def update_task(self, task_id: str, fields: TaskPayload) -> TaskPayload:
        body = await self._request("PUT", f"/tasks/{task_id}", json=fields)
        return body if isinstance(body, dict) else {}

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def sync_all(self, tasks: Sequence[TaskPayload]) -> None:
        await self._request("POST", "/sync", json=list(tasks), headers=self._auth_headers())
        logger.debug("Pushed %d tasks to %s/sync", len(tasks), self.base_url)


class AuthClient(_HttpBase):
    """Auth service: user existence check, login and registration."""

    def __init__(
        self,
        base_url: str,
        *,
        tokens: TokenStore,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout_seconds=timeout_seconds, transport=transport)
        self.tokens = tokens

    async def exists(self) -> bool:
        body = await self._request("GET", "/auth/exists", error_cls=AuthError)
        return bool(isinstance(body, dict) and body.get("exists"))

    async def _obtain_token(self, path: str, username: str, password: str) -> str:
        username = (username or "").strip()
        if not username or not password:
            raise ValueError("username and password required")
        body = await self._request(
            "POST",
            path,
            json={"username": username, "password": password},
            error_cls=AuthError,
        )
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthError(f"POST {path} returned no token")
        self.tokens.save_token(str(token))
        logger.info("Authenticated as %s via %s", username, path)
        return str(token)

    async def login(self, username: str, password: str) -> str:
        return await self._obtain_token("/auth/login", username, password)

    async def register(self, username: str, password: str) -> str:
        return await self._obtain_token("/auth/register", username, password)

    def logout(self) -> None:
        self.tokens.clear_token()
