import uuid

from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)
from django.db import models
from django.utils import timezone


class UserQuerySet(models.QuerySet):
    def not_deleted(self):
        return self.filter(deleted_at__isnull=True)

    def active(self):
        return self.not_deleted().filter(is_active=True)

    def managers(self):
        return self.filter(role=User.Role.MANAGER)

    def agents(self):
        return self.filter(role=User.Role.AGENT)


class UserManager(BaseUserManager.from_queryset(UserQuerySet)):
    """Custom manager for the User model that uses email as the unique identifier."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("An email address is required.")
        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.MANAGER)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Back-office user: either a manager or a field agent.

    Users are never row-deleted; ``deleted_at`` marks a soft delete and
    ``is_active`` is cleared at the same time. Repeated failed logins set
    ``account_locked_until``.
    """

    class Role(models.TextChoices):
        MANAGER = "manager", "Manager"
        AGENT = "agent", "Agent"

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    email = models.EmailField(
        "email address",
        unique=True,
        error_messages={
            "unique": "A user with this email address already exists.",
        },
    )
    first_name = models.CharField("first name", max_length=100)
    last_name = models.CharField("last name", max_length=100)
    phone = models.CharField("phone", max_length=30, blank=True, default="")
    department = models.CharField("department", max_length=100, blank=True, default="")
    position = models.CharField("position", max_length=100, blank=True, default="")
    bio = models.TextField("bio", blank=True, default="")
    role = models.CharField(
        "role",
        max_length=20,
        choices=Role.choices,
        default=Role.AGENT,
        db_index=True,
    )
    manager = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports",
        verbose_name="reports to",
    )
    created_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users_created",
        verbose_name="created by",
    )
    preferences = models.JSONField("preferences", default=dict, blank=True)

    is_active = models.BooleanField("active", default=True, db_index=True)
    is_staff = models.BooleanField("staff status", default=False)
    date_joined = models.DateTimeField("date joined", default=timezone.now)
    updated_at = models.DateTimeField("updated at", auto_now=True)

    failed_login_attempts = models.PositiveSmallIntegerField("failed login attempts", default=0)
    account_locked_until = models.DateTimeField("locked until", null=True, blank=True)
    deleted_at = models.DateTimeField("deleted at", null=True, blank=True, db_index=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["first_name", "last_name"]

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["last_name", "first_name"]

    def __str__(self):
        return self.get_full_name() or self.email

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def get_short_name(self):
        return self.first_name

    # ------------------------------------------------------------------
    # Role helpers
    # ------------------------------------------------------------------

    @property
    def is_manager(self):
        return self.role == self.Role.MANAGER

    @property
    def is_agent(self):
        return self.role == self.Role.AGENT

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def is_locked(self, now=None):
        if self.account_locked_until is None:
            return False
        return self.account_locked_until > (now or timezone.now())
