"""Admin configuration for the content app."""
from django.contrib import admin

from content.models import Content, ContentCategory


@admin.register(ContentCategory)
class ContentCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "parent", "is_active")
    search_fields = ("name",)


@admin.register(Content)
class ContentAdmin(admin.ModelAdmin):
    list_display = ("title", "content_type", "author", "is_public", "status", "download_count", "created_at")
    list_filter = ("content_type", "is_public", "status", "is_featured")
    search_fields = ("title", "description", "author__email")
    prepopulated_fields = {"slug": ("title",)}
