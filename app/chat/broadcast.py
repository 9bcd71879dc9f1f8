"""
Realtime fan-out of chat events through the Channels layer.

Every event goes to up to three groups (see chat.constants.CHAT_GROUPS):
    conv.<id>    clients that joined the conversation
    admins       every connected admin (inbox updates)
    user.<id>    every connection of the owning customer

Events are sent once the surrounding transaction commits, and only
best-effort: a failing channel layer is logged and never reaches the
caller. Consumers receive them through handlers named after the event
type (chat.message_created -> SupportChatConsumer.chat_message_created).

Usage:
    result = SupportChatService.send_message(...)
    if result:
        ChatBroadcaster.message_created(result.data, result.data.conversation)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from chat.constants import CHAT_GROUPS
from chat.serializers import ConversationSummarySerializer, MessageSerializer

if TYPE_CHECKING:
    from chat.models import Conversation, Message

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "chat.message_created"
CONVERSATION_UPSERTED = "chat.conversation_upserted"


class ChatBroadcaster:
    """Publishes MessageCreated / ConversationUpserted events."""

    @classmethod
    def message_created(cls, message: Message, conversation: Conversation) -> None:
        """
        Announce a new message, then the conversation's new inbox state.

        MessageCreated goes to conversation, admins, customer; the
        ConversationUpserted that follows goes to admins, customer,
        conversation.
        """
        message_event = {
            "type": MESSAGE_CREATED,
            "message": dict(MessageSerializer(message).data),
        }
        upsert_event = cls._upsert_event(conversation)

        conv_group = CHAT_GROUPS.conversation(conversation.id)
        user_group = CHAT_GROUPS.user(conversation.customer_id)
        cls._publish(
            conversation,
            [
                (conv_group, message_event),
                (CHAT_GROUPS.ADMINS, message_event),
                (user_group, message_event),
                (CHAT_GROUPS.ADMINS, upsert_event),
                (user_group, upsert_event),
                (conv_group, upsert_event),
            ],
        )

    @classmethod
    def conversation_read(cls, conversation: Conversation) -> None:
        """Unread counters changed: inbox views only, not the conversation group."""
        upsert_event = cls._upsert_event(conversation)
        cls._publish(
            conversation,
            [
                (CHAT_GROUPS.ADMINS, upsert_event),
                (CHAT_GROUPS.user(conversation.customer_id), upsert_event),
            ],
        )

    @classmethod
    def conversation_closed(cls, conversation: Conversation) -> None:
        upsert_event = cls._upsert_event(conversation)
        cls._publish(
            conversation,
            [
                (CHAT_GROUPS.ADMINS, upsert_event),
                (CHAT_GROUPS.user(conversation.customer_id), upsert_event),
                (CHAT_GROUPS.conversation(conversation.id), upsert_event),
            ],
        )

    @staticmethod
    def _upsert_event(conversation: Conversation) -> dict:
        return {
            "type": CONVERSATION_UPSERTED,
            "conversation": dict(ConversationSummarySerializer(conversation).data),
        }

    @classmethod
    def _publish(cls, conversation: Conversation, events: list[tuple[str, dict]]) -> None:
        conversation_id = conversation.id
        transaction.on_commit(lambda: cls._send(conversation_id, events))

    @staticmethod
    def _send(conversation_id, events: list[tuple[str, dict]]) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning(
                f"No channel layer configured; dropped {len(events)} events "
                f"for conversation {conversation_id}"
            )
            return

        group_send = async_to_sync(channel_layer.group_send)
        for group, event in events:
            try:
                group_send(group, event)
            except Exception:
                logger.exception(
                    f"Broadcast of {event['type']} to group {group} failed "
                    f"for conversation {conversation_id}"
                )
