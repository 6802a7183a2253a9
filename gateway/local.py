"""
In-process gateway backed by this project's own tables.

Mirrors the hosted backend closely enough for development and tests:
passwords are hashed, session tokens are signed, and writes to `blogs`
follow the usual row-level policy (signed in, own rows only).
"""

from __future__ import annotations

import datetime
import logging
import uuid
from typing import Optional

from django.contrib.auth.hashers import check_password, make_password
from django.core import signing
from django.core.exceptions import FieldError, ValidationError
from django.db import IntegrityError, transaction

from blog.models import Account, Blog, Profile

from .base import (
    SIGNED_IN,
    SIGNED_OUT,
    AuthSession,
    AuthUser,
    Gateway,
    GatewayError,
    SelectResult,
    split_columns,
)

logger = logging.getLogger(__name__)

TOKEN_SALT = "postboard.gateway.local"
TOKEN_MAX_AGE = 60 * 60 * 24 * 7
MIN_PASSWORD_LENGTH = 6

TABLES = {
    "users": Profile,
    "blogs": Blog,
}
OWNED_TABLES = {"blogs"}


def _plain(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value


def _auth_user(account: Account) -> AuthUser:
    return AuthUser(id=str(account.pk), email=account.email, avatar_url=account.avatar_url or None)


class LocalGateway(Gateway):

    # --- auth -------------------------------------------------------------

    def _account_for_session(self) -> Optional[Account]:
        if not self.session:
            return None
        try:
            account_id = signing.loads(self.session.access_token, salt=TOKEN_SALT, max_age=TOKEN_MAX_AGE)
        except signing.BadSignature:
            logger.info("discarding invalid or expired session token")
            self.session = None
            return None
        account = Account.objects.filter(pk=account_id).first()
        if account is None:
            self.session = None
        return account

    def get_current_user(self) -> Optional[AuthUser]:
        account = self._account_for_session()
        return _auth_user(account) if account else None

    def sign_up(self, email: str, password: str) -> AuthUser:
        email = (email or "").strip().lower()
        if not email:
            raise GatewayError("Anonymous sign-ins are disabled", status=422)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise GatewayError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.", status=422)
        try:
            with transaction.atomic():
                account = Account.objects.create(email=email, password=make_password(password))
        except IntegrityError:
            raise GatewayError("User already registered", status=422)
        logger.info("registered account %s", account.pk)
        return _auth_user(account)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        account = Account.objects.filter(email__iexact=(email or "").strip()).first()
        if account is None or not check_password(password, account.password):
            raise GatewayError("Invalid login credentials", status=400)
        token = signing.dumps(str(account.pk), salt=TOKEN_SALT)
        self.session = AuthSession(access_token=token, user=_auth_user(account))
        self._emit(SIGNED_IN)
        return self.session

    def sign_out(self) -> None:
        self.session = None
        self._emit(SIGNED_OUT)

    # --- rows -------------------------------------------------------------

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise GatewayError(f'relation "public.{table}" does not exist', status=404)

    def _queryset(self, table: str, match: Optional[dict]):
        model = self._model(table)
        try:
            qs = model.objects.filter(**(match or {}))
            # Filters are lazy; force validation of values such as malformed ids.
            qs.exists()
        except (ValidationError, ValueError) as e:
            raise GatewayError(f"invalid filter for {table}: {e}", status=400)
        except FieldError as e:
            raise GatewayError(str(e), status=400)
        return qs

    def _owned(self, table: str, qs):
        if table not in OWNED_TABLES:
            return qs
        account = self._account_for_session()
        if account is None:
            raise GatewayError("new row violates row-level security policy", status=401)
        return qs.filter(author_id=account.pk)

    def insert(self, table: str, fields: dict) -> dict:
        model = self._model(table)
        if table in OWNED_TABLES and self._account_for_session() is None:
            raise GatewayError(f'new row violates row-level security policy for table "{table}"', status=401)
        try:
            with transaction.atomic():
                obj = model.objects.create(**fields)
        except IntegrityError as e:
            raise GatewayError(f"duplicate key value violates unique constraint: {e}", status=409)
        except (TypeError, ValidationError, ValueError) as e:
            raise GatewayError(str(e), status=400)
        logger.debug("inserted %s row %s", table, obj.pk)
        return {f.attname: _plain(getattr(obj, f.attname)) for f in model._meta.concrete_fields}

    def update(self, table: str, fields: dict, match: dict) -> None:
        qs = self._owned(table, self._queryset(table, match))
        try:
            updated = qs.update(**fields)
        except (FieldError, ValidationError, ValueError) as e:
            raise GatewayError(str(e), status=400)
        logger.debug("updated %d %s row(s)", updated, table)

    def delete(self, table: str, match: dict) -> None:
        qs = self._owned(table, self._queryset(table, match))
        deleted, _ = qs.delete()
        logger.debug("deleted %d %s row(s)", deleted, table)

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
        qs = self._queryset(table, match)
        if order:
            qs = qs.order_by(f"-{order}" if descending else order)
        total = qs.count() if count else None
        if range is not None:
            start, end = range
            qs = qs[start:end + 1]
        wanted = split_columns(columns)
        try:
            rows = list(qs.values(*wanted) if wanted else qs.values())
        except FieldError as e:
            raise GatewayError(str(e), status=400)
        return SelectResult(rows=[{k: _plain(v) for k, v in r.items()} for r in rows], count=total)
