from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from blog.cards import OwnershipError, PostCard
from blog.listing import PAGE_SIZE
from blog.screen import BlogScreen


def _card_data(card: PostCard) -> dict:
    return {
        "post": card.post,
        "author": card.author_display_name,
        "is_owner": card.is_owner,
        "excerpt": card.excerpt,
    }


def _page(request) -> int:
    try:
        return max(int(request.query_params.get("page", 1)), 1)
    except (TypeError, ValueError):
        return 1


@api_view(["GET", "POST"])
def blogs(request):
    with BlogScreen(request) as screen:
        if request.method == "POST":
            return _create(request, screen)

        listing = screen.listing
        page = _page(request)
        if page != listing.page:
            listing.go_to_page(page)
        else:
            listing.mount()

        body = {
            "page": listing.page,
            "page_size": PAGE_SIZE,
            "total_count": listing.total_count,
            "total_pages": listing.total_pages,
            "refresh_token": listing.refresh_token,
            "error": listing.error,
            "blogs": [_card_data(c) for c in listing.cards(screen.session.email)],
        }
        code = status.HTTP_502_BAD_GATEWAY if listing.error else status.HTTP_200_OK
        return Response(body, status=code)


def _create(request, screen: BlogScreen):
    p = request.data
    dialog = screen.create_dialog().open()
    if dialog.unauthenticated:
        return Response({"error": "Please login to create a blog."}, status=status.HTTP_401_UNAUTHORIZED)

    if dialog.submit(title=str(p.get("title", "") or ""), content=str(p.get("content", "") or "")):
        return Response({"status": "created", "page": screen.listing.page}, status=status.HTTP_201_CREATED)
    return _dialog_error(dialog)


@api_view(["GET", "PATCH", "DELETE"])
def blog_detail(request, post_id: str):
    with BlogScreen(request) as screen:
        card = screen.load_card(post_id)

        if request.method == "GET":
            return Response(_card_data(card))
        if not screen.session.is_authenticated:
            return _session_required()

        try:
            if request.method == "PATCH":
                p = request.data
                title = str(p.get("title", card.post.get("title")) or "")
                content = str(p.get("content", card.post.get("content")) or "")
                if card.edit(title, content):
                    return Response(_card_data(card))
                return _dialog_error(card.edit_dialog)

            # DELETE confirms a request made earlier through delete-request.
            if not screen.has_pending_delete(card):
                return Response(
                    {"error": "delete must be requested before it is confirmed"},
                    status=status.HTTP_409_CONFLICT,
                )
            if screen.confirm_delete(card):
                return Response(status=status.HTTP_204_NO_CONTENT)
            return _dialog_error(card.delete_dialog)
        except OwnershipError as e:
            return Response({"error": str(e)}, status=status.HTTP_403_FORBIDDEN)


@api_view(["POST", "DELETE"])
def blog_delete_request(request, post_id: str):
    """First step of a delete: POST opens the confirmation, DELETE withdraws it."""
    with BlogScreen(request) as screen:
        if not screen.session.is_authenticated:
            return _session_required()
        card = screen.load_card(post_id)
        if request.method == "DELETE":
            screen.cancel_delete()
            return Response(status=status.HTTP_204_NO_CONTENT)
        try:
            screen.request_delete(card)
        except OwnershipError as e:
            return Response({"error": str(e)}, status=status.HTTP_403_FORBIDDEN)
        return Response({"status": "pending", "id": str(card.id)}, status=status.HTTP_202_ACCEPTED)


def _session_required() -> Response:
    return Response({"error": "User not authenticated"}, status=status.HTTP_401_UNAUTHORIZED)


def _dialog_error(dialog) -> Response:
    # Dialog errors are either validation (never reached the gateway) or a gateway message.
    code = status.HTTP_502_BAD_GATEWAY if dialog.gateway_failed else status.HTTP_400_BAD_REQUEST
    return Response({"error": dialog.error}, status=code)
