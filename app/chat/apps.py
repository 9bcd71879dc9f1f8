"""
Support chat application configuration.

This app provides:
- One open support conversation per customer
- Admin inbox with per-side unread counters
- Realtime delivery over Django Channels
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the support chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Support Chat"
