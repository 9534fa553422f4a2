"""Admin configuration for the clients app."""
from django.contrib import admin

from clients.models import Client, ClientNote


class ClientNoteInline(admin.TabularInline):
    model = ClientNote
    extra = 0
    fields = ("agent", "note_type", "note", "is_private", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "phone", "status", "agent", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("first_name", "last_name", "email", "phone", "agent__email")
    inlines = [ClientNoteInline]
