"""
Support chat models.

Models:
    Conversation: One customer's support thread, with denormalized inbox fields
    Message: A single immutable chat message

Design Decisions:
    - A customer has at most one open conversation (partial unique constraint)
    - The inbox reads only Conversation rows: preview, last sender and both
      unread counters are denormalized onto it on every send
    - State transitions live on Conversation as in-memory methods returning
      the changed field names; chat.services persists them under a row lock
    - Messages order by (created_at, id); the auto-increment id breaks ties
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from datetime import datetime


class SenderType(models.TextChoices):
    """Which side of the conversation sent a message."""

    CUSTOMER = "customer", "Customer"
    ADMIN = "admin", "Admin"


class Conversation(UUIDPrimaryKeyMixin, BaseModel):
    """
    A support conversation between one customer and the admin team.

    Fields:
        customer: Customer who opened the conversation
        customer_display_name: Customer's name captured when the conversation opened
        last_message_at: Timestamp of the most recent message (inbox sort key)
        last_message_preview: First 200 characters of the most recent message
        last_message_sender: Side that sent the most recent message
        unread_for_admin_count: Customer messages the admins have not read
        unread_for_customer_count: Admin messages the customer has not read
        last_customer_read_at: When the customer last marked the conversation read
        is_open: False once an admin closes the conversation
        closed_at: When the conversation was closed

    Relationships:
        messages: All Message records for this conversation
    """

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="support_conversations",
        help_text="Customer who opened this conversation",
    )
    customer_display_name = models.CharField(
        max_length=MESSAGE_CONFIG.DISPLAY_NAME_LENGTH,
        help_text="Customer display name at the time the conversation was opened",
    )

    last_message_at = models.DateTimeField(
        default=timezone.now,
        help_text="Timestamp of most recent message (for sorting the inbox)",
    )
    last_message_preview = models.CharField(
        max_length=MESSAGE_CONFIG.PREVIEW_LENGTH,
        default=MESSAGE_CONFIG.OPENING_PREVIEW,
        help_text="Truncated text of the most recent message",
    )
    last_message_sender = models.CharField(
        max_length=10,
        choices=SenderType.choices,
        default=SenderType.CUSTOMER,
        help_text="Side that sent the most recent message",
    )

    unread_for_admin_count = models.PositiveIntegerField(
        default=0,
        help_text="Customer messages not yet read by an admin",
    )
    unread_for_customer_count = models.PositiveIntegerField(
        default=0,
        help_text="Admin messages not yet read by the customer",
    )
    last_customer_read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time the customer marked the conversation as read",
    )

    is_open = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether the conversation is still open",
    )
    closed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When an admin closed the conversation",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-created_at"]
        indexes = [
            # Admin inbox: open conversations by last activity
            models.Index(
                fields=["-last_message_at", "-created_at"],
                name="chat_conv_inbox_idx",
                condition=Q(is_open=True),
            ),
        ]
        constraints = [
            # Only one open conversation per customer
            models.UniqueConstraint(
                fields=["customer"],
                condition=Q(is_open=True),
                name="chat_conv_one_open_per_customer",
            ),
        ]

    def __str__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"Conversation({self.pk}, {self.customer_display_name}, {state})"

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def record_message(self, sender_type: str, text: str, sent_at: datetime) -> list[str]:
        """
        Apply a newly sent message to the denormalized inbox fields.

        The opposite side's unread counter is incremented; the sender's own
        counter is left untouched.

        Returns:
            Names of the fields that changed, for save(update_fields=...)
        """
        self.last_message_at = sent_at
        self.last_message_preview = text[: MESSAGE_CONFIG.PREVIEW_LENGTH]
        self.last_message_sender = sender_type

        counter = self.unread_counter_for(sender_type)
        setattr(self, counter, getattr(self, counter) + 1)

        return [
            "last_message_at",
            "last_message_preview",
            "last_message_sender",
            counter,
            "updated_at",
        ]

    @staticmethod
    def unread_counter_for(sender_type: str) -> str:
        """Name of the counter a message from ``sender_type`` increments."""
        if sender_type == SenderType.CUSTOMER:
            return "unread_for_admin_count"
        return "unread_for_customer_count"

    def mark_read_by_admin(self) -> list[str]:
        self.unread_for_admin_count = 0
        return ["unread_for_admin_count", "updated_at"]

    def mark_read_by_customer(self, read_at: datetime) -> list[str]:
        self.last_customer_read_at = read_at
        self.unread_for_customer_count = 0
        return ["last_customer_read_at", "unread_for_customer_count", "updated_at"]

    def close(self, closed_at: datetime) -> list[str]:
        """Close the conversation. Closing twice keeps the first closed_at."""
        if not self.is_open:
            return []
        self.is_open = False
        self.closed_at = closed_at
        return ["is_open", "closed_at", "updated_at"]

    def is_accessible_by(self, user_id, is_admin: bool) -> bool:
        """Admins see every conversation; customers only their own."""
        return is_admin or self.customer_id == user_id


class Message(models.Model):
    """
    A chat message. Messages are immutable once created.

    Fields:
        conversation: Conversation this message belongs to
        sender_type: customer or admin
        sender: User who sent the message (null if the account was deleted)
        text: Message body, 1 to 2000 characters
        created_at: When the message was sent
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )
    sender_type = models.CharField(
        max_length=10,
        choices=SenderType.choices,
        help_text="Side that sent this message",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="support_messages",
        help_text="User who sent this message",
    )
    text = models.TextField(
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
        validators=[MinLengthValidator(MESSAGE_CONFIG.MIN_TEXT_LENGTH)],
        help_text="Message text",
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the message was sent",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Transcript order
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_order_idx",
            ),
            # Unread recount for the customer (admin messages after a read point)
            models.Index(
                fields=["conversation", "sender_type", "created_at"],
                name="chat_msg_conv_sender_idx",
            ),
        ]

    def __str__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"{self.sender_type}: {preview}"
