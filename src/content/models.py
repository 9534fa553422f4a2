"""Models for the content app: knowledge base, announcements, training."""
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.text import slugify

from core.models import TimeStampedModel


class ContentCategory(TimeStampedModel):
    name = models.CharField("name", max_length=100, unique=True)
    description = models.TextField("description", blank=True, default="")
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
        verbose_name="parent",
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "content category"
        verbose_name_plural = "content categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ContentQuerySet(models.QuerySet):
    def visible_to(self, user):
        """Public rows plus the user's own. Applies to managers as well."""
        return self.filter(Q(is_public=True) | Q(author=user))


class Content(TimeStampedModel):
    """A piece of shared material written by one author.

    ``is_public`` is the only visibility switch: a private item is seen by
    its author and nobody else, whatever their role.
    """

    class ContentType(models.TextChoices):
        KNOWLEDGE_BASE = "knowledge_base", "Knowledge base"
        POLICY_UPDATE = "policy_update", "Policy update"
        EVENT = "event", "Event"
        ANNOUNCEMENT = "announcement", "Announcement"
        TRAINING = "training", "Training"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        ARCHIVED = "archived", "Archived"

    title = models.CharField("title", max_length=255)
    slug = models.SlugField("slug", max_length=280, unique=True, blank=True)
    content_type = models.CharField(
        "type",
        max_length=20,
        choices=ContentType.choices,
        default=ContentType.KNOWLEDGE_BASE,
        db_index=True,
    )
    body = models.TextField("body", blank=True, default="")
    description = models.TextField("description", blank=True, default="")
    content_url = models.URLField("link", max_length=500, blank=True, default="")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="authored_content",
        verbose_name="author",
    )
    category = models.ForeignKey(
        ContentCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="items",
        verbose_name="category",
    )
    tags = models.JSONField("tags", default=list, blank=True)
    is_featured = models.BooleanField("featured", default=False)
    is_published = models.BooleanField("published", default=True)
    is_public = models.BooleanField("public", default=False, db_index=True)
    status = models.CharField(
        "status",
        max_length=20,
        choices=Status.choices,
        default=Status.PUBLISHED,
    )
    published_at = models.DateTimeField("published at", null=True, blank=True)
    view_count = models.PositiveIntegerField("views", default=0)
    download_count = models.PositiveIntegerField("downloads", default=0)

    objects = ContentQuerySet.as_manager()

    class Meta:
        verbose_name = "content"
        verbose_name_plural = "content"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "is_public"], name="content_author_public_idx"),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        if self.status == self.Status.PUBLISHED and self.published_at is None:
            self.published_at = timezone.now()
        super().save(*args, **kwargs)

    def _unique_slug(self):
        base = slugify(self.title)[:250] or "content"
        slug = base
        suffix = 2
        while Content.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug
