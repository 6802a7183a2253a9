from __future__ import annotations

import logging
from typing import Callable, Optional

from django.utils.dateparse import parse_datetime

from gateway import Gateway, GatewayError

from .dialogs import DeleteConfirmDialog, EditPostDialog, ViewPostDialog

logger = logging.getLogger(__name__)

LOADING = "Loading..."
UNKNOWN_AUTHOR = "Unknown author"
EXCERPT_LENGTH = 150


class OwnershipError(Exception):
    pass


def is_owner(session_email: Optional[str], author_email: Optional[str]) -> bool:
    """Ownership is exact equality of the viewer's email and the stored author email."""
    return session_email is not None and session_email == author_email


def _noop() -> None:
    return None


class PostCard:
    """One post in the list: author name, ownership, and the owner's actions."""

    def __init__(
        self,
        post: dict,
        session_email: Optional[str],
        gateway: Gateway,
        on_mutated: Callable[[], None] = _noop,
    ):
        self.post = post
        self.session_email = session_email
        self.gateway = gateway
        self.on_mutated = on_mutated
        self.author_display_name = LOADING

        self.view_dialog = ViewPostDialog(post)
        self.edit_dialog = EditPostDialog(gateway, post, on_saved=self._saved)
        self.delete_dialog = DeleteConfirmDialog(gateway, post, on_deleted=self._deleted)
        self.deleted = False

    @property
    def id(self):
        return self.post.get("id")

    @property
    def is_owner(self) -> bool:
        return is_owner(self.session_email, self.post.get("author_email"))

    def set_session_email(self, email: Optional[str]) -> None:
        self.session_email = email

    @property
    def excerpt(self) -> str:
        return (self.post.get("content") or "")[:EXCERPT_LENGTH] + "..."

    @property
    def created_on(self):
        value = self.post.get("created_at")
        if isinstance(value, str):
            value = parse_datetime(value)
        return value.date() if value else None

    def resolve_author(self) -> str:
        email = self.post.get("author_email")
        if not email:
            self.author_display_name = UNKNOWN_AUTHOR
            return self.author_display_name
        try:
            row = self.gateway.select_one("users", "full_name, email", {"email": email})
        except GatewayError as e:
            logger.debug("author lookup failed for post %s: %s", self.id, e)
            row = None
        self.author_display_name = (row or {}).get("full_name") or UNKNOWN_AUTHOR
        return self.author_display_name

    # --- actions ------------------------------------------------------------

    def _require_owner(self) -> None:
        if not self.is_owner:
            raise OwnershipError("You can only change your own posts")

    def open_view(self) -> ViewPostDialog:
        return self.view_dialog.open()

    def open_edit(self) -> EditPostDialog:
        self._require_owner()
        return self.edit_dialog.open()

    def edit(self, title: str, content: str) -> bool:
        self._require_owner()
        self.edit_dialog.open()
        return self.edit_dialog.submit(title=title, content=content)

    def request_delete(self) -> DeleteConfirmDialog:
        self._require_owner()
        return self.delete_dialog.open()

    def confirm_delete(self) -> bool:
        self._require_owner()
        # Without a prior request_delete() the dialog is closed and refuses to submit.
        return self.delete_dialog.submit()

    def _saved(self) -> None:
        self.post = self.edit_dialog.post
        self.view_dialog.post = self.post
        self.delete_dialog.post = self.post
        self.on_mutated()

    def _deleted(self) -> None:
        self.deleted = True
        self.on_mutated()
