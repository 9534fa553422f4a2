"""Models for the clients app."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Client(TimeStampedModel):
    """A prospect or policy holder owned by exactly one agent."""

    class Status(models.TextChoices):
        PROSPECT = "prospect", "Prospect"
        CLIENT = "client", "Client"

    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="clients",
        verbose_name="agent",
    )
    first_name = models.CharField("first name", max_length=100)
    last_name = models.CharField("last name", max_length=100)
    email = models.EmailField("email", blank=True, default="")
    phone = models.CharField("phone", max_length=30, blank=True, default="", db_index=True)
    date_of_birth = models.DateField("date of birth", null=True, blank=True)
    employer = models.CharField("employer", max_length=200, blank=True, default="")
    address = models.TextField("address", blank=True, default="")
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PROSPECT,
        db_index=True,
    )
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "client"
        verbose_name_plural = "clients"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["agent", "created_at"], name="client_agent_created_idx"),
        ]

    @property
    def full_name(self):
        """Return the client's full name."""
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.full_name or self.email


class ClientNote(TimeStampedModel):
    """Free-text note attached to a client by an agent."""

    class NoteType(models.TextChoices):
        GENERAL = "general", "General"
        FOLLOW_UP = "follow_up", "Follow-up"
        POLICY = "policy", "Policy"
        IMPORTANT = "important", "Important"

    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name="client_notes",
        verbose_name="client",
    )
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_notes",
        verbose_name="author",
    )
    note = models.TextField("note")
    note_type = models.CharField(
        "type",
        max_length=20,
        choices=NoteType.choices,
        default=NoteType.GENERAL,
    )
    is_private = models.BooleanField("private", default=False)

    class Meta:
        verbose_name = "client note"
        verbose_name_plural = "client notes"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.get_note_type_display()} note on {self.client}"
