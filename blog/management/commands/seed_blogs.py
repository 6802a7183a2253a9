import datetime
from pathlib import Path

import yaml
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from blog.models import Account, Blog, Profile

DEFAULT_FIXTURE = Path(__file__).resolve().parents[2] / "fixtures" / "demo_blogs.yaml"


class Command(BaseCommand):
    help = "Seed demo accounts + blogs into the local gateway tables"

    def add_arguments(self, parser):
        parser.add_argument("--file", type=Path, default=DEFAULT_FIXTURE, help="YAML fixture to load")

    def handle(self, *args, **options):
        path: Path = options["file"]
        if not path.exists():
            raise CommandError(f"Fixture not found: {path}")

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise CommandError("Fixture must be a mapping with 'accounts' and 'blogs'")

        accounts = {}
        for a in data.get("accounts", []) or []:
            email = str(a["email"]).strip().lower()
            account, _ = Account.objects.update_or_create(
                email=email,
                defaults={"password": make_password(str(a.get("password", "")))},
            )
            full_name = str(a.get("full_name") or email)
            profile, made = Profile.objects.get_or_create(email=email, defaults={"id": account.pk, "full_name": full_name})
            if not made and profile.full_name != full_name:
                profile.full_name = full_name
                profile.save(update_fields=["full_name"])
            accounts[email] = account

        created = 0
        for b in data.get("blogs", []) or []:
            email = str(b.get("author", "")).strip().lower()
            account = accounts.get(email) or Account.objects.filter(email=email).first()
            blog, was_created = Blog.objects.update_or_create(
                title=str(b["title"]),
                author_email=email,
                defaults={
                    "content": str(b.get("content", "")).strip(),
                    "author_id": account.pk if account else None,
                },
            )
            stamp = b.get("created_at")
            if stamp:
                # auto_now_add ignores values given to create(); set it afterwards.
                when = stamp if not isinstance(stamp, str) else parse_datetime(stamp)
                if when and timezone.is_naive(when):
                    when = timezone.make_aware(when, datetime.timezone.utc)
                Blog.objects.filter(pk=blog.pk).update(created_at=when)
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"Seeded {len(accounts)} accounts + {created} new blogs."))
