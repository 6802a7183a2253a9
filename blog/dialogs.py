"""
Modal dialogs.

Each dialog owns its form fields, its error and a small state machine:

    CLOSED -> READY | UNAUTHENTICATED -> SUBMITTING -> CLOSED | ERROR

Closing always discards the fields and the error. Submission is refused
while another one is in flight, and validation failures never reach the
gateway.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

from django.utils import timezone

from gateway import Gateway, GatewayError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class DialogState(enum.Enum):
    CLOSED = "closed"
    UNAUTHENTICATED = "unauthenticated"
    READY = "ready"
    SUBMITTING = "submitting"
    ERROR = "error"


class ValidationError(Exception):
    pass


def _noop(*args, **kwargs) -> None:
    return None


class Dialog:
    fields: tuple[str, ...] = ()
    submittable = True

    def __init__(self):
        self.state = DialogState.CLOSED
        self.error: Optional[str] = None
        self._reset()

    def _reset(self) -> None:
        self.error = None
        self.gateway_failed = False
        for name in self.fields:
            setattr(self, name, "")

    @property
    def is_open(self) -> bool:
        return self.state is not DialogState.CLOSED

    @property
    def submitting(self) -> bool:
        return self.state is DialogState.SUBMITTING

    @property
    def can_submit(self) -> bool:
        return self.submittable and self.state in (DialogState.READY, DialogState.ERROR)

    def open(self) -> "Dialog":
        if not self.is_open:
            self._reset()
            self.state = DialogState.READY
        return self

    def close(self) -> bool:
        if self.submitting:
            return False
        self.state = DialogState.CLOSED
        self._reset()
        return True

    def validate(self) -> None:
        pass

    def perform(self) -> None:
        raise NotImplementedError

    def on_success(self) -> None:
        pass

    def submit(self, **values) -> bool:
        if not self.can_submit:
            return False
        for name, value in values.items():
            if name in self.fields:
                setattr(self, name, value if value is not None else "")
        self.error = None
        self.gateway_failed = False

        try:
            self.validate()
        except ValidationError as e:
            self.error = str(e)
            self.state = DialogState.ERROR
            return False

        self.state = DialogState.SUBMITTING
        try:
            self.perform()
        except GatewayError as e:
            self.error = e.message
            self.gateway_failed = True
            self.state = DialogState.ERROR
            return False
        except Exception:
            self.state = DialogState.ERROR
            raise

        self.state = DialogState.CLOSED
        self._reset()
        self.on_success()
        return True


class AuthDialog(Dialog):
    """Login, or register then log in."""

    fields = ("email", "password", "confirm_password", "full_name")

    LOGIN = "login"
    REGISTER = "register"

    def __init__(self, gateway: Gateway, on_success: Callable = _noop, mode: str = LOGIN):
        self.gateway = gateway
        self.on_login = on_success
        self.mode = mode
        self.user = None
        super().__init__()

    @property
    def is_register(self) -> bool:
        return self.mode == self.REGISTER

    def toggle_mode(self) -> None:
        self.mode = self.LOGIN if self.is_register else self.REGISTER
        self.error = None

    def validate(self) -> None:
        if not self.email.strip() or not self.password.strip():
            raise ValidationError("Email and password are required")
        if self.is_register:
            if not self.full_name.strip():
                raise ValidationError("Full name is required")
            if self.password != self.confirm_password:
                raise ValidationError("Passwords do not match")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    def perform(self) -> None:
        email = self.email.strip()
        if self.is_register:
            created = self.gateway.sign_up(email, self.password)
            try:
                self.gateway.insert("users", {"id": created.id, "full_name": self.full_name.strip(), "email": email})
            except GatewayError as e:
                logger.warning("profile insert failed for new account: %s", e)
                raise GatewayError("User profile creation failed", status=e.status)
        session = self.gateway.sign_in_with_password(email, self.password)
        self.user = session.user

    def on_success(self) -> None:
        self.on_login(self.user)


class RegisterForm(AuthDialog):
    """Standalone register page: email and password only, no profile row."""

    fields = ("email", "password")

    def __init__(self, gateway: Gateway, on_success: Callable = _noop):
        super().__init__(gateway, on_success, mode=self.REGISTER)

    def validate(self) -> None:
        if not self.email.strip() or not self.password.strip():
            raise ValidationError("Email and password are required")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    def perform(self) -> None:
        email = self.email.strip()
        self.gateway.sign_up(email, self.password)
        self.user = self.gateway.sign_in_with_password(email, self.password).user


class CreatePostDialog(Dialog):
    fields = ("title", "content")

    def __init__(self, gateway: Gateway, session, on_created: Callable = _noop):
        self.gateway = gateway
        self.session = session
        self.on_created = on_created
        super().__init__()

    def open(self) -> "CreatePostDialog":
        if self.is_open:
            return self
        self._reset()
        user = self.session.load()
        # Stays open with a prompt instead of a form until the user closes it.
        self.state = DialogState.READY if user and user.email else DialogState.UNAUTHENTICATED
        return self

    @property
    def unauthenticated(self) -> bool:
        return self.state is DialogState.UNAUTHENTICATED

    def validate(self) -> None:
        if not self.title.strip() or not self.content.strip():
            raise ValidationError("Title and content are required")
        if not self.session.user or not self.session.email:
            raise ValidationError("User not authenticated")

    def perform(self) -> None:
        user = self.session.user
        self.gateway.insert(
            "blogs",
            {
                "title": self.title,
                "content": self.content,
                "author_id": user.id,
                "author_email": user.email,
            },
        )

    def on_success(self) -> None:
        self.on_created()


class EditPostDialog(Dialog):
    fields = ("title", "content")

    def __init__(self, gateway: Gateway, post: dict, on_saved: Callable = _noop):
        self.gateway = gateway
        self.post = post
        self.on_saved = on_saved
        super().__init__()

    def open(self) -> "EditPostDialog":
        if not self.is_open:
            super().open()
            self.title = self.post.get("title") or ""
            self.content = self.post.get("content") or ""
        return self

    def validate(self) -> None:
        if not self.title.strip() or not self.content.strip():
            raise ValidationError("Title and content are required")
        if not self.post.get("id"):
            raise ValidationError("Missing blog ID")

    def perform(self) -> None:
        fields = {
            "title": self.title,
            "content": self.content,
            "updated_at": timezone.now().isoformat(),
        }
        self.gateway.update("blogs", fields, {"id": self.post["id"]})
        self.post = {**self.post, **fields}

    def on_success(self) -> None:
        self.on_saved()


class DeleteConfirmDialog(Dialog):
    """Opening is the request step; submit() is the confirmation."""

    def __init__(self, gateway: Gateway, post: dict, on_deleted: Callable = _noop):
        self.gateway = gateway
        self.post = post
        self.on_deleted = on_deleted
        super().__init__()

    def perform(self) -> None:
        self.gateway.delete("blogs", {"id": self.post["id"]})

    def on_success(self) -> None:
        self.on_deleted()


class ViewPostDialog(Dialog):
    submittable = False

    def __init__(self, post: dict):
        self.post = post
        super().__init__()


class LogoutDialog(Dialog):
    def __init__(self, gateway: Gateway, on_done: Callable = _noop):
        self.gateway = gateway
        self.on_done = on_done
        super().__init__()

    def perform(self) -> None:
        self.gateway.sign_out()

    def on_success(self) -> None:
        self.on_done()
