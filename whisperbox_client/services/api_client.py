"""
HTTP API client for talking to the Whisperbox backend.

Usage pattern:

    from whisperbox_client.services.api_client import APIClient

    client = APIClient()

    # visitor side
    await client.send_message(username="alice", content="hi")

    # owner side
    await client.sign_in(identifier="alice", password="secret1")
    messages = await client.get_messages()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx


# -----------------------------
# Configuration helpers
# -----------------------------


def _load_base_url() -> str:
    """
    Determine the backend base URL.

    Priority:
    1. Environment variable WHISPERBOX_API_BASE_URL
    2. Default: http://127.0.0.1:8000
    """
    env_url = os.getenv("WHISPERBOX_API_BASE_URL")
    if env_url:
        return env_url.rstrip("/")

    return "http://127.0.0.1:8000"


# -----------------------------
# Error types
# -----------------------------


class APIError(Exception):
    """Generic API error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(APIError):
    """Authentication / authorization error."""


class ForbiddenError(APIError):
    """The target inbox refused the request (e.g. not accepting messages)."""


class NotFoundError(APIError):
    """No such user or message."""


_STATUS_ERRORS = {
    401: AuthError,
    403: ForbiddenError,
    404: NotFoundError,
}


@dataclass
class TokenInfo:
    access_token: str
    expires_at: Optional[str] = None  # ISO8601 string from backend


# -----------------------------
# Main API client
# -----------------------------


class APIClient:
    """
    Reusable HTTP client for the Whisperbox backend.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url: str = (base_url or _load_base_url()).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._token: Optional[TokenInfo] = None

    # ---------- Internal helpers ----------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=10.0,  # seconds
                transport=self._transport,
            )
        return self._client

    def _get_auth_header(self) -> Dict[str, str]:
        """
        Return Authorization header; raise if not signed in.
        """
        if not self._token or not self._token.access_token:
            raise AuthError("Not signed in - call sign_in() first")

        return {"Authorization": f"Bearer {self._token.access_token}"}

    @staticmethod
    def _check(resp: httpx.Response, what: str) -> Dict[str, Any]:
        """
        Return the decoded JSON body, or raise the error type matching the
        status code with the backend's ``message`` field.
        """
        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_success:
            return data

        message = data.get("message") if isinstance(data, dict) else None
        error_cls = _STATUS_ERRORS.get(resp.status_code, APIError)
        raise error_cls(f"{what} failed: {message or resp.text}", status_code=resp.status_code)

    # ---------- Public methods ----------

    async def close(self) -> None:
        """
        Close underlying HTTP connection pool.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ---- Health check ----

    async def health(self) -> Dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.get("/health")
        return self._check(resp, "/health")

    # ---- Authentication ----

    async def sign_up(self, username: str, email: str, password: str) -> Dict[str, Any]:
        client = await self._ensure_client()
        payload = {"username": username, "email": email, "password": password}
        resp = await client.post("/sign-up", json=payload)
        return self._check(resp, "/sign-up")

    async def verify_code(self, username: str, code: str) -> Dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.post("/verify-code", json={"username": username, "code": code})
        return self._check(resp, "/verify-code")

    async def check_username_unique(self, username: str) -> bool:
        """
        True when the name is free. Validation and "already taken" answers
        both come back as 400 and read False.
        """
        client = await self._ensure_client()
        resp = await client.get("/check-username-unique", params={"username": username})
        if resp.status_code == 400:
            return False
        self._check(resp, "/check-username-unique")
        return True

    async def sign_in(self, identifier: str, password: str) -> TokenInfo:
        """
        Call /sign-in and store the JWT for subsequent requests.
        """
        client = await self._ensure_client()
        resp = await client.post(
            "/sign-in", json={"identifier": identifier, "password": password}
        )
        data = self._check(resp, "/sign-in")

        token = TokenInfo(
            access_token=data.get("access_token", ""),
            expires_at=data.get("expires_at"),
        )
        if not token.access_token:
            raise APIError("Sign-in did not return access_token")

        self._token = token
        return token

    def sign_out(self) -> None:
        self._token = None

    # ---- Visitor side ----

    async def send_message(self, username: str, content: str) -> Dict[str, Any]:
        """
        POST /send-message. Raises NotFoundError for unknown users and
        ForbiddenError when the inbox is closed.
        """
        client = await self._ensure_client()
        resp = await client.post("/send-message", json={"username": username, "content": content})
        return self._check(resp, "/send-message")

    async def suggest_messages(self, prompt: Optional[str] = None) -> List[str]:
        client = await self._ensure_client()
        body = {"prompt": prompt} if prompt else None
        resp = await client.post("/suggest-messages", json=body)
        data = self._check(resp, "/suggest-messages")
        content = data.get("content")
        if not content:
            raise APIError("No content in response")
        return parse_suggestions(content)

    async def check_message(self, prompt: str) -> str:
        """
        POST /messages-check and return the model's raw reply.
        """
        client = await self._ensure_client()
        resp = await client.post("/messages-check", json={"prompt": prompt})
        data = self._check(resp, "/messages-check")
        reply = data.get("response")
        if not isinstance(reply, str):
            raise APIError("Expected a text response from /messages-check")
        return reply

    async def anon_status(self, username: str) -> bool:
        """
        Whether the user's anon shield is on. A 403 means it is off.
        """
        client = await self._ensure_client()
        resp = await client.get(f"/anon-status/{username}")
        if resp.status_code == 403:
            return False
        data = self._check(resp, "/anon-status")
        return bool(data.get("anonShield"))

    # ---- Dashboard ----

    async def get_profile(self) -> Dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.get("/me", headers=self._get_auth_header())
        return self._check(resp, "/me")

    async def get_messages(self) -> List[Dict[str, Any]]:
        client = await self._ensure_client()
        resp = await client.get("/get-messages", headers=self._get_auth_header())
        data = self._check(resp, "/get-messages")
        messages = data.get("messages")
        if not isinstance(messages, list):
            raise APIError("Expected a list of messages from /get-messages")
        return messages

    async def delete_message(self, message_id: int) -> Dict[str, Any]:
        client = await self._ensure_client()
        resp = await client.delete(
            f"/delete-messages/{message_id}", headers=self._get_auth_header()
        )
        return self._check(resp, "/delete-messages")

    async def get_accept_messages(self) -> bool:
        client = await self._ensure_client()
        resp = await client.get("/accept-message", headers=self._get_auth_header())
        return bool(self._check(resp, "/accept-message")["isAcceptingMessages"])

    async def set_accept_messages(self, accept: bool) -> bool:
        client = await self._ensure_client()
        resp = await client.post(
            "/accept-message",
            json={"acceptMessages": accept},
            headers=self._get_auth_header(),
        )
        return bool(self._check(resp, "/accept-message")["isAcceptingMessages"])

    async def get_anon_shield(self) -> bool:
        client = await self._ensure_client()
        resp = await client.get("/anon-shield", headers=self._get_auth_header())
        return bool(self._check(resp, "/anon-shield")["anonShield"])

    async def set_anon_shield(self, enabled: bool) -> bool:
        client = await self._ensure_client()
        resp = await client.post(
            "/anon-shield",
            json={"anonShield": enabled},
            headers=self._get_auth_header(),
        )
        return bool(self._check(resp, "/anon-shield")["anonShield"])


def parse_suggestions(content: str) -> List[str]:
    """Split the model's '||'-separated suggestions, dropping blanks."""

    return [part.strip() for part in content.split("||") if part.strip()]


def profile_url(base_url: str, username: str) -> str:
    """Shareable link visitors use to reach the send-message page."""

    return f"{base_url.rstrip('/')}/u/{username}"
