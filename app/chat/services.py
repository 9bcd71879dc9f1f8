"""
Support chat service layer.

SupportChatService holds every conversation and message operation. Views and
the WebSocket consumer call it; it never talks to the channel layer itself
(see chat.broadcast).

Design Principles:
    - Stateless class methods returning ServiceResult
    - Expected failures use the codes in chat.constants.ERROR_CODES
    - Counter updates run under a row lock on the conversation
      (select_for_update inside a transaction) and increment with an F()
      expression, so concurrent sends never lose an increment

Usage:
    from chat.services import SupportChatService

    result = SupportChatService.open_conversation(request.user)
    conversation, unread = result.data

    result = SupportChatService.send_message(
        conversation_id=conversation.id,
        sender=request.user,
        sender_type=SenderType.CUSTOMER,
        text="My order has not arrived",
    )
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import F
from django.utils import timezone

from chat.constants import ERROR_CODES, MESSAGE_CONFIG
from chat.models import Conversation, Message, SenderType
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from authentication.models import User


class SupportChatService(BaseService):
    """
    Conversation lifecycle, messaging and read tracking.

    Methods:
        open_conversation: Resume the customer's open conversation or start one
        get_admin_inbox: Open conversations, most recent activity first
        get_conversation: Single conversation for an authorized user
        get_conversation_messages: Transcript in send order
        send_message: Persist a message and update the inbox fields
        mark_conversation_as_read: Reset the reader's unread counter
        close_conversation: Admin closes a conversation
        can_access_conversation: Authorization check used by the WebSocket join
    """

    @classmethod
    def open_conversation(cls, customer: User) -> ServiceResult[tuple[Conversation, int]]:
        """
        Return the customer's open conversation, creating it if needed.

        For an existing conversation the customer's unread count is recounted
        from admin messages newer than last_customer_read_at, so it stays
        correct across sessions.

        Returns:
            ServiceResult with (conversation, unread_for_customer_count)
        """
        conversation = cls._resume_open_conversation(customer)
        if conversation is not None:
            return ServiceResult.success(
                (conversation, conversation.unread_for_customer_count)
            )

        now = timezone.now()
        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    customer=customer,
                    customer_display_name=customer.get_full_name()[
                        : MESSAGE_CONFIG.DISPLAY_NAME_LENGTH
                    ],
                    last_message_at=now,
                    last_customer_read_at=now,
                )
                # auto_now_add stamps its own time; align it with the opening
                Conversation.objects.filter(pk=conversation.pk).update(
                    created_at=now, updated_at=now
                )
                conversation.created_at = conversation.updated_at = now
        except IntegrityError:
            # Lost the race against a concurrent open for the same customer
            conversation = cls._resume_open_conversation(customer)
            if conversation is None:
                raise
            return ServiceResult.success(
                (conversation, conversation.unread_for_customer_count)
            )

        cls.get_logger().info(
            f"Created conversation {conversation.id} for customer {customer.pk}"
        )
        return ServiceResult.success((conversation, 0))

    @classmethod
    def get_admin_inbox(cls) -> ServiceResult[list[Conversation]]:
        conversations = Conversation.objects.filter(is_open=True).order_by(
            "-last_message_at", "-created_at"
        )
        return ServiceResult.success(list(conversations))

    @classmethod
    def get_conversation(cls, conversation_id, user: User) -> ServiceResult[Conversation]:
        return cls._load_conversation(
            conversation_id, user, is_admin=user.is_support_admin
        )

    @classmethod
    def get_conversation_messages(
        cls, conversation_id, user: User
    ) -> ServiceResult[list[Message]]:
        result = cls._load_conversation(
            conversation_id, user, is_admin=user.is_support_admin
        )
        return result.map(
            lambda conversation: list(
                conversation.messages.order_by("created_at", "id")
            )
        )

    @classmethod
    def send_message(
        cls,
        conversation_id,
        sender: User,
        sender_type: str,
        text: str,
    ) -> ServiceResult[Message]:
        """
        Persist a message and apply it to the conversation's inbox fields.

        Customers may only send to their own conversation; any admin may send
        to any conversation. The returned message's ``conversation`` is the
        updated conversation instance.

        Error codes:
            CONVERSATION_NOT_FOUND, FORBIDDEN, CONVERSATION_CLOSED
        """
        with cls.atomic():
            result = cls._load_conversation(
                conversation_id,
                sender,
                is_admin=sender_type == SenderType.ADMIN,
                lock=True,
            )
            if not result:
                return result
            conversation = result.data

            if not conversation.is_open:
                return cls.fail(
                    "Conversation is closed",
                    ERROR_CODES.CONVERSATION_CLOSED,
                    conversation_id=conversation.id,
                    user_id=sender.pk,
                )

            now = timezone.now()
            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                sender_type=sender_type,
                text=text,
                created_at=now,
            )
            changed = conversation.record_message(sender_type, text, now)

            # Increment in SQL so a backend without row locks keeps every count
            counter = Conversation.unread_counter_for(sender_type)
            values = {field: getattr(conversation, field) for field in changed}
            values[counter] = F(counter) + 1
            values["updated_at"] = now
            Conversation.objects.filter(pk=conversation.pk).update(**values)
            conversation.refresh_from_db(fields=[counter])
            conversation.updated_at = now

        cls.get_logger().info(
            f"Message {message.id} sent in conversation {conversation.id} "
            f"by {sender_type} {sender.pk}"
        )
        return ServiceResult.success(message)

    @classmethod
    def mark_conversation_as_read(
        cls, conversation_id, user: User
    ) -> ServiceResult[Conversation]:
        """
        Reset the reader's unread counter.

        Admins clear unread_for_admin_count. Customers clear
        unread_for_customer_count and move last_customer_read_at to now.
        """
        is_admin = user.is_support_admin
        with cls.atomic():
            result = cls._load_conversation(
                conversation_id, user, is_admin=is_admin, lock=True
            )
            if not result:
                return result
            conversation = result.data

            if is_admin:
                changed = conversation.mark_read_by_admin()
            else:
                changed = conversation.mark_read_by_customer(timezone.now())
            conversation.save(update_fields=changed)

        cls.get_logger().info(
            f"Conversation {conversation.id} marked as read by "
            f"{'admin' if is_admin else 'customer'} {user.pk}"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def close_conversation(cls, conversation_id, user: User) -> ServiceResult[Conversation]:
        """
        Close a conversation. Admin only; closing twice is a no-op.

        The customer's next open_conversation starts a new conversation.
        """
        with cls.atomic():
            result = cls._load_conversation(
                conversation_id, user, is_admin=user.is_support_admin, lock=True
            )
            if not result:
                return result
            conversation = result.data

            if not user.is_support_admin:
                return cls.fail(
                    "Only admins can close conversations",
                    ERROR_CODES.FORBIDDEN,
                    conversation_id=conversation.id,
                    user_id=user.pk,
                )

            changed = conversation.close(timezone.now())
            if changed:
                conversation.save(update_fields=changed)
                cls.get_logger().info(
                    f"Conversation {conversation.id} closed by admin {user.pk}"
                )

        return ServiceResult.success(conversation)

    @classmethod
    def can_access_conversation(cls, conversation_id, user: User) -> ServiceResult[None]:
        result = cls._load_conversation(
            conversation_id, user, is_admin=user.is_support_admin
        )
        return result.map(lambda conversation: None)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @classmethod
    def _load_conversation(
        cls,
        conversation_id,
        user: User,
        *,
        is_admin: bool,
        lock: bool = False,
    ) -> ServiceResult[Conversation]:
        """
        Fetch a conversation and check the user may act on it.

        Malformed ids are reported as CONVERSATION_NOT_FOUND. ``lock`` must
        only be used inside an atomic block.
        """
        try:
            conversation_uuid = uuid.UUID(str(conversation_id))
        except ValueError:
            conversation_uuid = None

        conversation = None
        if conversation_uuid is not None:
            queryset = Conversation.objects.all()
            if lock:
                queryset = queryset.select_for_update()
            conversation = queryset.filter(pk=conversation_uuid).first()

        if conversation is None:
            return cls.fail(
                "Conversation not found",
                ERROR_CODES.CONVERSATION_NOT_FOUND,
                conversation_id=conversation_id,
                user_id=user.pk,
            )

        if not conversation.is_accessible_by(user.pk, is_admin):
            return cls.fail(
                "You don't have access to this conversation",
                ERROR_CODES.FORBIDDEN,
                conversation_id=conversation.id,
                user_id=user.pk,
            )

        return ServiceResult.success(conversation)

    @classmethod
    def _resume_open_conversation(cls, customer: User) -> Conversation | None:
        """Lock the customer's open conversation and recount their unread messages."""
        with cls.atomic():
            conversation = (
                Conversation.objects.select_for_update()
                .filter(customer=customer, is_open=True)
                .first()
            )
            if conversation is None or conversation.last_customer_read_at is None:
                return conversation

            unread = conversation.messages.filter(
                sender_type=SenderType.ADMIN,
                created_at__gt=conversation.last_customer_read_at,
            ).count()
            if unread != conversation.unread_for_customer_count:
                conversation.unread_for_customer_count = unread
                conversation.save(update_fields=["unread_for_customer_count", "updated_at"])

        cls.get_logger().info(
            f"Resumed conversation {conversation.id} for customer {customer.pk} "
            f"with {conversation.unread_for_customer_count} unread"
        )
        return conversation
