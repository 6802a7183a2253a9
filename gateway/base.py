from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


class GatewayError(Exception):
    """A failure reported by the hosted backend (auth or data)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class NotFound(GatewayError):
    pass


@dataclass
class AuthUser:
    id: str
    email: Optional[str]
    avatar_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "avatar_url": self.avatar_url}

    @classmethod
    def from_dict(cls, data: dict) -> "AuthUser":
        meta = data.get("user_metadata") or {}
        return cls(
            id=str(data["id"]),
            email=data.get("email"),
            avatar_url=data.get("avatar_url") or meta.get("avatar_url"),
        )


@dataclass
class AuthSession:
    access_token: str
    user: AuthUser
    refresh_token: str = ""

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user": self.user.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["AuthSession"]:
        if not data or not data.get("access_token") or not data.get("user"):
            return None
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or "",
            user=AuthUser.from_dict(data["user"]),
        )


@dataclass
class SelectResult:
    rows: list[dict] = field(default_factory=list)
    count: Optional[int] = None


AuthCallback = Callable[[str, Optional[AuthSession]], None]


class Subscription:
    """Handle returned by on_auth_state_change; release with unsubscribe()."""

    def __init__(self, listeners: list, callback: AuthCallback):
        self._listeners = listeners
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        try:
            self._listeners.remove(self._callback)
        except ValueError:
            pass
        logger.info("auth listener unsubscribed")


class Gateway:
    """Auth + row storage contract shared by every backend."""

    def __init__(self, session: Optional[AuthSession] = None):
        self.session = session
        self._auth_listeners: list[AuthCallback] = []

    # --- auth -------------------------------------------------------------

    def get_current_user(self) -> Optional[AuthUser]:
        raise NotImplementedError

    def sign_up(self, email: str, password: str) -> AuthUser:
        raise NotImplementedError

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._auth_listeners.append(callback)
        logger.info("auth listener subscribed")
        return Subscription(self._auth_listeners, callback)

    def _emit(self, event: str) -> None:
        logger.info("auth state changed: %s", event)
        for callback in list(self._auth_listeners):
            callback(event, self.session)

    def export_session(self) -> Optional[dict]:
        return self.session.to_dict() if self.session else None

    # --- rows -------------------------------------------------------------

    def insert(self, table: str, fields: dict) -> dict:
        raise NotImplementedError

    def update(self, table: str, fields: dict, match: dict) -> None:
        raise NotImplementedError

    def delete(self, table: str, match: dict) -> None:
        raise NotImplementedError

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
        raise NotImplementedError

    def select_one(self, table: str, columns: str, match: dict) -> dict:
        result = self.select(table, columns=columns, match=match, range=(0, 0))
        if not result.rows:
            raise NotFound(f"No rows in {table} matching {_describe(match)}", status=404)
        return result.rows[0]


def _describe(match: dict) -> str:
    return ", ".join(f"{k}={v}" for k, v in match.items()) or "(all)"


def split_columns(columns: str) -> Optional[list[str]]:
    if columns.strip() == "*":
        return None
    return [c.strip() for c in columns.split(",") if c.strip()]


def project(row: dict[str, Any], columns: str) -> dict[str, Any]:
    wanted = split_columns(columns)
    if wanted is None:
        return dict(row)
    return {c: row.get(c) for c in wanted}
