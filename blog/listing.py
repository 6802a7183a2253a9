from __future__ import annotations

import logging
import math
from typing import Optional

from gateway import Gateway, GatewayError

from .cards import PostCard

logger = logging.getLogger(__name__)

PAGE_SIZE = 5
EMPTY_MESSAGE = "No blogs found."


def total_pages(total_count: int) -> int:
    return max(math.ceil(total_count / PAGE_SIZE), 1)


def page_range(page: int) -> tuple[int, int]:
    """Inclusive row window for a 1-based page."""
    start = (page - 1) * PAGE_SIZE
    return start, start + PAGE_SIZE - 1


class PostListing:
    """
    The main page's list: one page of posts, newest first.

    Requests are numbered; a response that is not for the most recent request
    is dropped, so the list always shows the page that was asked for last.
    """

    def __init__(self, gateway: Gateway, page: int = 1, refresh_token: int = 0):
        self.gateway = gateway
        self.posts: list[dict] = []
        self.page = max(int(page), 1)
        self.total_count = 0
        self.loading = False
        self.error: Optional[str] = None
        self.page_changing = False
        self.refresh_token = refresh_token

        self._generation = 0
        self._cards: dict = {}
        self._cards_token = refresh_token

    @classmethod
    def restore(cls, gateway: Gateway, data: Optional[dict]) -> "PostListing":
        data = data or {}
        return cls(gateway, page=data.get("page", 1), refresh_token=data.get("refresh_token", 0))

    def snapshot(self) -> dict:
        return {"page": self.page, "refresh_token": self.refresh_token}

    # --- derived ------------------------------------------------------------

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def is_empty(self) -> bool:
        return not self.loading and not self.error and not self.posts

    @property
    def show_loading(self) -> bool:
        return self.loading and not self.page_changing

    # --- fetching -----------------------------------------------------------

    def fetch_page(self, n: int) -> bool:
        self._generation += 1
        generation = self._generation
        if not self.page_changing:
            self.loading = True
        self.error = None

        try:
            result = self.gateway.select(
                "blogs",
                "*",
                order="created_at",
                descending=True,
                range=page_range(n),
                count=True,
            )
        except GatewayError as e:
            if generation != self._generation:
                logger.debug("dropping stale failure for page %d", n)
                return False
            self.error = e.message
            self.posts = []
            self.total_count = 0
            return False
        finally:
            if generation == self._generation:
                self.loading = False
                self.page_changing = False

        if generation != self._generation:
            logger.debug("dropping stale response for page %d", n)
            return False
        self.posts = list(result.rows)
        self.total_count = result.count or 0
        return True

    def mount(self) -> bool:
        return self.fetch_page(self.page)

    def go_to_page(self, n: int) -> bool:
        n = max(int(n), 1)
        if n == self.page:
            return False
        self.page_changing = True
        self.page = n
        return self.fetch_page(n)

    def on_auth_changed(self, user=None) -> bool:
        self.page = 1
        return self.fetch_page(1)

    def notify_mutated(self) -> bool:
        self.page = 1
        self.refresh_token += 1
        return self.fetch_page(1)

    # --- children -----------------------------------------------------------

    def cards(self, session_email: Optional[str], resolve: bool = True) -> list[PostCard]:
        if self._cards_token != self.refresh_token:
            self._cards = {}
            self._cards_token = self.refresh_token

        cards = []
        for post in self.posts:
            card = self._cards.get(post.get("id"))
            if card is None:
                card = PostCard(post, session_email, self.gateway, on_mutated=self.notify_mutated)
                if resolve:
                    card.resolve_author()
                self._cards[post.get("id")] = card
            else:
                card.set_session_email(session_email)
            cards.append(card)
        return cards
