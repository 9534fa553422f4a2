"""Models for the teams app."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Team(TimeStampedModel):
    name = models.CharField("name", max_length=100, unique=True)
    description = models.TextField("description", blank=True, default="")
    manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="managed_teams",
        verbose_name="manager",
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "team"
        verbose_name_plural = "teams"
        ordering = ["name"]

    def __str__(self):
        return self.name


class TeamMember(TimeStampedModel):
    class Role(models.TextChoices):
        MEMBER = "member", "Member"
        LEAD = "lead", "Lead"
        SPECIALIST = "specialist", "Specialist"

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="team_memberships",
    )
    role = models.CharField("role", max_length=20, choices=Role.choices, default=Role.MEMBER)

    class Meta:
        verbose_name = "team member"
        verbose_name_plural = "team members"
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="unique_team_member"),
        ]

    def __str__(self):
        return f"{self.user} in {self.team}"
