"""
Client for a hosted Supabase project: GoTrue for auth, PostgREST for rows.

Only the handful of calls the blog needs are implemented. Every failure is
raised as GatewayError carrying the server's message verbatim.
"""

from __future__ import annotations

import json
import logging
import urllib.request
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode

from .base import (
    SIGNED_IN,
    SIGNED_OUT,
    AuthSession,
    AuthUser,
    Gateway,
    GatewayError,
    SelectResult,
)

logger = logging.getLogger(__name__)


def _error_message(body: str, fallback: str) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip() or fallback
    if isinstance(data, dict):
        for key in ("msg", "message", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    return fallback


def parse_content_range(value: Optional[str]) -> Optional[int]:
    """Total from a PostgREST Content-Range header ("0-4/12" or "*/0")."""
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


class SupabaseGateway(Gateway):
    def __init__(self, url: str, anon_key: str, session: Optional[AuthSession] = None, timeout: float = 10):
        super().__init__(session)
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    # --- transport --------------------------------------------------------

    def _headers(self, extra: Optional[dict] = None) -> dict:
        token = self.session.access_token if self.session else self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, payload=None, headers: Optional[dict] = None):
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(self.url + path, data=data, method=method)
        for k, v in self._headers(headers).items():
            req.add_header(k, v)
        logger.debug("%s %s", method, path.split("?")[0])
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as r:
                raw = r.read().decode("utf-8")
                body = json.loads(raw) if raw.strip() else None
                return body, r.headers
        except HTTPError as e:
            text = e.read().decode("utf-8", errors="replace")
            message = _error_message(text, f"HTTP {e.code} {e.reason}")
            logger.warning("%s %s failed: %s", method, path.split("?")[0], message)
            raise GatewayError(message, status=e.code) from e
        except URLError as e:
            logger.warning("%s %s unreachable: %s", method, path.split("?")[0], e.reason)
            raise GatewayError(str(e.reason)) from e

    # --- auth -------------------------------------------------------------

    def get_current_user(self) -> Optional[AuthUser]:
        if not self.session:
            return None
        try:
            body, _ = self._request("GET", "/auth/v1/user")
        except GatewayError as e:
            if e.status in (401, 403):
                self.session = None
                return None
            raise
        return AuthUser.from_dict(body) if body else None

    def sign_up(self, email: str, password: str) -> AuthUser:
        body, _ = self._request("POST", "/auth/v1/signup", {"email": email, "password": password})
        user = (body or {}).get("user") or body
        if not user or not user.get("id"):
            raise GatewayError("Registration failed")
        return AuthUser.from_dict(user)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        body, _ = self._request(
            "POST",
            "/auth/v1/token?grant_type=password",
            {"email": email, "password": password},
        )
        session = AuthSession.from_dict(body)
        if session is None:
            raise GatewayError("Failed to authenticate")
        self.session = session
        self._emit(SIGNED_IN)
        return session

    def sign_out(self) -> None:
        if self.session:
            self._request("POST", "/auth/v1/logout")
        self.session = None
        self._emit(SIGNED_OUT)

    # --- rows -------------------------------------------------------------

    @staticmethod
    def _filters(match: Optional[dict]) -> list[tuple[str, str]]:
        return [(k, f"eq.{v}") for k, v in (match or {}).items()]

    def insert(self, table: str, fields: dict) -> dict:
        body, _ = self._request(
            "POST",
            f"/rest/v1/{quote(table)}",
            [fields],
            headers={"Prefer": "return=representation"},
        )
        return body[0] if body else dict(fields)

    def update(self, table: str, fields: dict, match: dict) -> None:
        qs = urlencode(self._filters(match))
        self._request("PATCH", f"/rest/v1/{quote(table)}?{qs}", fields)

    def delete(self, table: str, match: dict) -> None:
        qs = urlencode(self._filters(match))
        self._request("DELETE", f"/rest/v1/{quote(table)}?{qs}")

    def select(
        self,
        table: str,
        columns: str = "*",
        match: Optional[dict] = None,
        order: Optional[str] = None,
        descending: bool = False,
        range: Optional[tuple[int, int]] = None,
        count: bool = False,
    ) -> SelectResult:
        params = [("select", columns)] + self._filters(match)
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        extra = {}
        if range is not None:
            extra["Range-Unit"] = "items"
            extra["Range"] = f"{range[0]}-{range[1]}"
        if count:
            extra["Prefer"] = "count=exact"
        body, headers = self._request("GET", f"/rest/v1/{quote(table)}?{urlencode(params)}", headers=extra)
        total = parse_content_range(headers.get("Content-Range")) if count else None
        return SelectResult(rows=list(body or []), count=total)
