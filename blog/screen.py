from __future__ import annotations

import logging
from typing import Optional

from django.http import Http404

from gateway import Gateway, GatewayError, NotFound, build_gateway

from .cards import PostCard
from .dialogs import AuthDialog, CreatePostDialog, LogoutDialog
from .listing import PostListing
from .session import AUTH_KEY, SessionState

logger = logging.getLogger(__name__)

LISTING_KEY = "listing"
PENDING_DELETE_KEY = "pending_delete"


class BlogScreen:
    """
    Everything one request needs: gateway, session and the list.

    Entering loads the current user and holds the auth subscription; leaving
    releases it and saves the list position back into the Django session.
    """

    def __init__(self, request, gateway: Optional[Gateway] = None):
        self.request = request
        self.store = request.session
        self.gateway = gateway or build_gateway(self.store.get(AUTH_KEY))
        self.session = SessionState(self.gateway, self.store)
        self.listing = PostListing.restore(self.gateway, self.store.get(LISTING_KEY))
        self.session.add_listener(self.listing.on_auth_changed)

    def __enter__(self) -> "BlogScreen":
        self.session.__enter__()
        self.session.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.store[LISTING_KEY] = self.listing.snapshot()
        finally:
            self.session.__exit__(exc_type, exc, tb)

    # --- dialogs ------------------------------------------------------------

    def auth_dialog(self, mode: str = AuthDialog.LOGIN) -> AuthDialog:
        return AuthDialog(self.gateway, mode=mode)

    def create_dialog(self) -> CreatePostDialog:
        return CreatePostDialog(self.gateway, self.session, on_created=self.listing.notify_mutated)

    def logout_dialog(self) -> LogoutDialog:
        return LogoutDialog(self.gateway)

    # --- cards --------------------------------------------------------------

    def load_card(self, post_id) -> PostCard:
        try:
            row = self.gateway.select_one("blogs", "*", {"id": str(post_id)})
        except NotFound:
            raise Http404("Post not found")
        except GatewayError as e:
            if e.status == 400:
                raise Http404("Post not found")
            raise
        card = PostCard(row, self.session.email, self.gateway, on_mutated=self.listing.notify_mutated)
        card.resolve_author()
        return card

    def request_delete(self, card: PostCard) -> None:
        card.request_delete()
        self.store[PENDING_DELETE_KEY] = str(card.id)

    def has_pending_delete(self, card: PostCard) -> bool:
        return self.store.get(PENDING_DELETE_KEY) == str(card.id)

    def confirm_delete(self, card: PostCard) -> bool:
        """Second step; refused unless request_delete() ran for the same post first."""
        if not self.has_pending_delete(card):
            return False
        card.request_delete()
        deleted = card.confirm_delete()
        if deleted:
            self.store.pop(PENDING_DELETE_KEY, None)
        return deleted

    def cancel_delete(self) -> None:
        self.store.pop(PENDING_DELETE_KEY, None)
