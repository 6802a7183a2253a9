from __future__ import annotations

import uuid

from django.db import models


class Account(models.Model):
    """Credentials for the local gateway's auth API."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, db_index=True)
    password = models.CharField(max_length=128)
    avatar_url = models.URLField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.email


class Profile(models.Model):
    """Row of the `users` table: display data keyed by email."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    email = models.EmailField(unique=True, db_index=True)
    full_name = models.CharField(max_length=160)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "users"

    def __str__(self) -> str:
        return self.full_name


class Blog(models.Model):
    """Row of the `blogs` table."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=240)
    content = models.TextField()
    author_id = models.UUIDField(null=True, blank=True)
    # Copied at creation; not rewritten if the author's email changes.
    author_email = models.EmailField(blank=True, default="", db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "blogs"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title
