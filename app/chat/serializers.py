"""
Serializers for the support chat API.

The same read serializers produce HTTP response bodies and WebSocket event
payloads (chat.broadcast), so their output must stay plain JSON types: ids
of related rows are exposed as explicit fields rather than nested objects.

Serializer Hierarchy:
    ConversationSummarySerializer: Inbox row / ConversationUpserted payload
    ConversationDetailSerializer: Single conversation view
    MessageSerializer: Transcript row / MessageCreated payload
    SendMessageSerializer: Send request body
    OpenConversationResponseSerializer: Open response body (schema only)
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSummarySerializer(serializers.ModelSerializer):
    """Inbox list item."""

    customer_user_id = serializers.IntegerField(source="customer_id", read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "customer_user_id",
            "customer_display_name",
            "created_at",
            "last_message_at",
            "last_message_preview",
            "last_message_sender",
            "unread_for_admin_count",
            "unread_for_customer_count",
            "is_open",
        ]
        read_only_fields = fields


class ConversationDetailSerializer(serializers.ModelSerializer):
    """Conversation header: counters and read/close state, without the preview."""

    customer_user_id = serializers.IntegerField(source="customer_id", read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "customer_user_id",
            "customer_display_name",
            "created_at",
            "last_message_at",
            "unread_for_admin_count",
            "unread_for_customer_count",
            "last_customer_read_at",
            "is_open",
            "closed_at",
        ]
        read_only_fields = fields


class OpenConversationResponseSerializer(serializers.Serializer):
    conversation_id = serializers.UUIDField()
    unread_count = serializers.IntegerField(min_value=0)


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    conversation_id = serializers.UUIDField(read_only=True)
    sender_user_id = serializers.IntegerField(
        source="sender_id",
        read_only=True,
        allow_null=True,
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_type",
            "sender_user_id",
            "text",
            "created_at",
        ]
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    """
    Request body for POST /api/chat/messages/send.

    Text is stored as sent (no trimming) but must contain at least one
    non-whitespace character.
    """

    conversation_id = serializers.UUIDField()
    text = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_TEXT_LENGTH,
        trim_whitespace=False,
        help_text="Message text (max 2,000 characters)",
    )

    def validate_text(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("Message text cannot be empty.")
        return value


class StatusSerializer(serializers.Serializer):
    status = serializers.CharField()
