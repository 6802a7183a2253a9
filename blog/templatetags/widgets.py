from __future__ import annotations

from typing import Optional

from django import template

from blog.cards import PostCard
from blog.listing import EMPTY_MESSAGE, PostListing
from blog.session import SessionUser

register = template.Library()


@register.inclusion_tag("blog/widgets/post_card.html")
def post_card_widget(card: PostCard, page: int = 1):
    """One card; edit/delete only for the owner."""
    return {"card": card, "post": card.post, "is_owner": card.is_owner, "page": page}


@register.inclusion_tag("blog/widgets/pagination.html")
def pagination_widget(listing: PostListing):
    """Previous / Page n of m / Next."""
    return {
        "page": listing.page,
        "total_pages": listing.total_pages,
        "previous_page": max(listing.page - 1, 1),
        "next_page": min(listing.page + 1, listing.total_pages),
        "has_previous": listing.has_previous,
        "has_next": listing.has_next,
    }


@register.inclusion_tag("blog/widgets/list_status.html")
def list_status_widget(listing: PostListing):
    return {
        "show_loading": listing.show_loading,
        "error": listing.error,
        "empty_message": EMPTY_MESSAGE if listing.is_empty else "",
    }


@register.inclusion_tag("blog/widgets/session_button.html")
def session_button_widget(session_user: Optional[SessionUser] = None):
    """Avatar initial that opens the logout dialog, or a Login button."""
    return {"session_user": session_user}
