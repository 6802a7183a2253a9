from __future__ import annotations

from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .base import (
    SIGNED_IN,
    SIGNED_OUT,
    AuthSession,
    AuthUser,
    Gateway,
    GatewayError,
    NotFound,
    SelectResult,
    Subscription,
)

__all__ = [
    "SIGNED_IN",
    "SIGNED_OUT",
    "AuthSession",
    "AuthUser",
    "Gateway",
    "GatewayError",
    "NotFound",
    "SelectResult",
    "Subscription",
    "build_gateway",
]


def build_gateway(stored_session: Optional[dict] = None) -> Gateway:
    """Gateway selected by settings.BLOG_GATEWAY, resuming a stored session."""
    kind = getattr(settings, "BLOG_GATEWAY", "local")
    session = AuthSession.from_dict(stored_session)

    if kind == "local":
        from .local import LocalGateway

        return LocalGateway(session)

    if kind == "supabase":
        from .supabase import SupabaseGateway

        url = getattr(settings, "SUPABASE_URL", "")
        key = getattr(settings, "SUPABASE_ANON_KEY", "")
        if not url or not key:
            raise ImproperlyConfigured("SUPABASE_URL and SUPABASE_ANON_KEY are required for the supabase gateway")
        return SupabaseGateway(url, key, session, timeout=getattr(settings, "BLOG_GATEWAY_TIMEOUT", 10))

    raise ImproperlyConfigured(f"Unknown BLOG_GATEWAY: {kind!r}")
