from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional

from gateway import AuthSession, Gateway, GatewayError, Subscription

logger = logging.getLogger(__name__)

# Keys in the Django session mapping.
AUTH_KEY = "auth"
EMAIL_KEY = "email"


@dataclass(frozen=True)
class SessionUser:
    email: Optional[str]
    id: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def initial(self) -> str:
        return self.email[0].upper() if self.email else ""


class SessionState:
    """
    Current identity, kept in one place.

    Every auth transition rewrites the stored gateway session and the cached
    email together, then tells listeners. Use as a context manager to hold the
    gateway's auth subscription for exactly the lifetime of a view.
    """

    def __init__(self, gateway: Gateway, store: Optional[MutableMapping] = None):
        self.gateway = gateway
        self.store = store if store is not None else {}
        self.user: Optional[SessionUser] = None
        self._listeners: list[Callable[[Optional[SessionUser]], None]] = []
        self._subscription: Optional[Subscription] = None

    @property
    def email(self) -> Optional[str]:
        return self.user.email if self.user else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def add_listener(self, fn: Callable[[Optional[SessionUser]], None]) -> None:
        self._listeners.append(fn)

    def load(self) -> Optional[SessionUser]:
        try:
            auth_user = self.gateway.get_current_user()
        except GatewayError as e:
            logger.warning("could not load current user: %s", e)
            auth_user = None
        self.user = SessionUser(auth_user.email, auth_user.id, auth_user.avatar_url) if auth_user else None
        self._persist()
        return self.user

    def _persist(self) -> None:
        self.store[AUTH_KEY] = self.gateway.export_session()
        if self.user and self.user.email:
            self.store[EMAIL_KEY] = self.user.email
        else:
            self.store.pop(EMAIL_KEY, None)

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        if session and session.user:
            self.user = SessionUser(session.user.email, session.user.id, session.user.avatar_url)
        else:
            self.user = None
        self._persist()
        logger.info("session %s", "signed in" if self.user else "signed out")
        for fn in list(self._listeners):
            fn(self.user)

    # --- scoped subscription -----------------------------------------------

    def subscribe(self) -> None:
        if self._subscription is not None and self._subscription.active:
            return
        self._subscription = self.gateway.on_auth_state_change(self._on_auth_change)

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def __enter__(self) -> "SessionState":
        self.subscribe()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()
