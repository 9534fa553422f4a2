"""Bootstrap the first manager account."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from accounts.models import User


class Command(BaseCommand):
    help = "Create a manager account (used to seed an empty installation)."

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--first-name", default="Admin")
        parser.add_argument("--last-name", default="Manager")

    def handle(self, *args, **options):
        email = options["email"].strip()
        if User.objects.filter(email__iexact=email).exists():
            raise CommandError(f"A user with email {email} already exists.")

        user = User.objects.create_user(
            email=email,
            password=options["password"],
            first_name=options["first_name"],
            last_name=options["last_name"],
            role=User.Role.MANAGER,
            is_staff=True,
        )
        self.stdout.write(self.style.SUCCESS(f"Manager {user.email} created ({user.pk})."))
