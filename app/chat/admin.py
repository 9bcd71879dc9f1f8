"""
Django admin configuration for the support chat.

Conversations are browsable with their transcript inline. Messages are
read-only: they are immutable once sent.
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Read-only transcript inside the conversation page."""

    model = Message
    extra = 0
    can_delete = False
    fields = ["created_at", "sender_type", "sender", "text"]
    readonly_fields = fields
    ordering = ["created_at", "id"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "customer_display_name",
        "is_open",
        "last_message_sender",
        "unread_for_admin_count",
        "unread_for_customer_count",
        "last_message_at",
    ]
    list_filter = ["is_open", "last_message_sender", "created_at"]
    search_fields = ["id", "customer_display_name", "customer__email"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "last_message_at",
        "last_message_preview",
        "last_message_sender",
        "unread_for_admin_count",
        "unread_for_customer_count",
        "last_customer_read_at",
        "closed_at",
    ]
    raw_id_fields = ["customer"]
    inlines = [MessageInline]
    ordering = ["-last_message_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "conversation", "sender_type", "sender", "created_at"]
    list_filter = ["sender_type", "created_at"]
    search_fields = ["text", "conversation__id"]
    readonly_fields = ["conversation", "sender_type", "sender", "text", "created_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
