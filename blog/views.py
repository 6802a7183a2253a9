from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from django.core.exceptions import PermissionDenied
from django.http import Http404
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from gateway import GatewayError

from .dialogs import AuthDialog, RegisterForm
from .screen import BlogScreen

logger = logging.getLogger(__name__)

DIALOGS = {"login", "register", "create", "logout", "view", "edit", "delete"}


def with_screen(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        with BlogScreen(request) as screen:
            return view(request, screen, *args, **kwargs)

    return wrapper


def session_required(view):
    """Send visitors without a session to the login dialog."""

    @wraps(view)
    def wrapper(request, screen, *args, **kwargs):
        if not screen.session.is_authenticated:
            return redirect(_login_url())
        return view(request, screen, *args, **kwargs)

    return wrapper


def _login_url() -> str:
    return reverse("blog:home") + "?dialog=login"


def _page_param(request) -> Optional[int]:
    try:
        return max(int(request.GET.get("page", "")), 1)
    except ValueError:
        return None


def _render_home(request, screen: BlogScreen, ctx: Optional[dict] = None, status: int = 200):
    listing = screen.listing
    requested = _page_param(request)
    if requested is not None and requested != listing.page:
        listing.go_to_page(requested)
    else:
        listing.mount()

    context = {
        "listing": listing,
        "cards": listing.cards(screen.session.email),
        "session_user": screen.session.user,
    }
    context.update(ctx or {})
    return render(request, "blog/home.html", context, status=status)


@require_GET
@with_screen
def home(request, screen: BlogScreen):
    name = request.GET.get("dialog")
    post_id = request.GET.get("post")
    ctx = {}

    # Leaving the delete confirmation any way but through its form withdraws it.
    if name != "delete":
        screen.cancel_delete()

    if name not in DIALOGS:
        return _render_home(request, screen)

    if name == "login":
        ctx["auth_dialog"] = screen.auth_dialog().open()
    elif name == "register":
        ctx["auth_dialog"] = screen.auth_dialog(AuthDialog.REGISTER).open()
    elif name == "create":
        ctx["create_dialog"] = screen.create_dialog().open()
    elif name == "logout":
        if screen.session.is_authenticated:
            ctx["logout_dialog"] = screen.logout_dialog().open()
    elif post_id:
        try:
            card = screen.load_card(post_id)
        except GatewayError as e:
            return _gateway_failure(request, e)
        ctx["dialog_card"] = card
        if name == "view":
            ctx["view_dialog"] = card.open_view()
        elif not card.is_owner:
            return redirect("blog:home")
        elif name == "edit":
            ctx["edit_dialog"] = card.open_edit()
        else:
            screen.request_delete(card)
            ctx["delete_dialog"] = card.delete_dialog

    return _render_home(request, screen, ctx)


@require_POST
@with_screen
def login(request, screen: BlogScreen):
    mode = request.POST.get("mode") or AuthDialog.LOGIN
    dialog = screen.auth_dialog(mode).open()
    ok = dialog.submit(
        email=request.POST.get("email"),
        password=request.POST.get("password"),
        confirm_password=request.POST.get("confirm_password"),
        full_name=request.POST.get("full_name"),
    )
    if ok:
        return redirect("blog:home")
    return _render_home(request, screen, {"auth_dialog": dialog}, status=400)


@require_POST
@with_screen
def logout(request, screen: BlogScreen):
    dialog = screen.logout_dialog().open()
    if dialog.submit():
        return redirect("blog:home")
    return _render_home(request, screen, {"logout_dialog": dialog}, status=502)


@require_POST
@with_screen
def create_post(request, screen: BlogScreen):
    dialog = screen.create_dialog().open()
    if dialog.submit(title=request.POST.get("title"), content=request.POST.get("content")):
        return redirect("blog:home")
    status = 401 if dialog.unauthenticated else 400
    return _render_home(request, screen, {"create_dialog": dialog}, status=status)


@require_POST
@with_screen
def edit_post(request, screen: BlogScreen, post_id):
    try:
        card = screen.load_card(post_id)
    except GatewayError as e:
        return _gateway_failure(request, e)
    if not card.is_owner:
        raise PermissionDenied("You can only edit your own posts!")
    if card.edit(request.POST.get("title") or "", request.POST.get("content") or ""):
        return redirect("blog:home")
    ctx = {"dialog_card": card, "edit_dialog": card.edit_dialog}
    return _render_home(request, screen, ctx, status=400)


@require_POST
@with_screen
def delete_post(request, screen: BlogScreen, post_id):
    try:
        card = screen.load_card(post_id)
    except GatewayError as e:
        return _gateway_failure(request, e)
    if not card.is_owner:
        raise PermissionDenied("You can only delete your own posts!")
    if request.POST.get("cancel"):
        screen.cancel_delete()
        return redirect("blog:home")
    if not screen.has_pending_delete(card):
        return redirect(reverse("blog:home") + f"?dialog=delete&post={card.id}")
    if screen.confirm_delete(card):
        return redirect("blog:home")
    ctx = {"dialog_card": card, "delete_dialog": card.delete_dialog}
    return _render_home(request, screen, ctx, status=502)


@require_http_methods(["GET", "POST"])
@with_screen
@session_required
def create_page(request, screen: BlogScreen):
    dialog = screen.create_dialog().open()
    status = 200
    if request.method == "POST":
        if dialog.submit(title=request.POST.get("title"), content=request.POST.get("content")):
            return redirect("blog:home")
        status = 400
    return render(request, "blog/create.html", {"dialog": dialog, "session_user": screen.session.user}, status=status)


@require_http_methods(["GET", "POST"])
@with_screen
@session_required
def edit_page(request, screen: BlogScreen, post_id):
    try:
        card = screen.load_card(post_id)
    except Http404:
        return _message(request, "Edit Blog", "Blog not found", status=404)
    except GatewayError as e:
        return _message(request, "Edit Blog", e.message, status=502)

    if not card.is_owner:
        return _message(request, "Edit Blog", "You can only edit your own posts!", status=403)

    dialog = card.open_edit()
    status = 200
    if request.method == "POST":
        if card.edit(request.POST.get("title") or "", request.POST.get("content") or ""):
            return redirect("blog:home")
        status = 400
    return render(request, "blog/edit.html", {"card": card, "dialog": dialog}, status=status)


@require_http_methods(["GET", "POST"])
@with_screen
def register(request, screen: BlogScreen):
    form = RegisterForm(screen.gateway).open()
    status = 200
    if request.method == "POST":
        if form.submit(email=request.POST.get("email"), password=request.POST.get("password")):
            return redirect("blog:home")
        status = 400
    return render(request, "blog/register.html", {"form": form}, status=status)


def _message(request, title: str, message: str, status: int):
    return render(request, "blog/message.html", {"title": title, "message": message}, status=status)


def _gateway_failure(request, e: GatewayError):
    logger.warning("gateway failure on %s: %s", request.path, e.message)
    return _message(request, "Blog Posts", e.message, status=502)


def not_found(request, exception=None):
    logger.warning("404 - Not Found: %s", request.path)
    return render(request, "blog/404.html", status=404)
