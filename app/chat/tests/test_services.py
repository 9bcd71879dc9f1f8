"""
Tests for SupportChatService.

Test Organization:
    - One test class per service method
    - Names follow test_<scenario>_<expected_outcome>

Tests focus on observable behavior:
    - ServiceResult success/failure and error codes
    - Database state of conversations and messages
"""

import threading
from datetime import timedelta
from unittest import mock

import pytest
from django.db import IntegrityError, connection
from django.utils import timezone
from freezegun import freeze_time

from authentication.tests.factories import UserFactory
from chat.models import Conversation, Message, SenderType
from chat.services import SupportChatService
from chat.tests.factories import ConversationFactory, MessageFactory


def send(conversation, user, text, sender_type=None):
    if sender_type is None:
        sender_type = SenderType.ADMIN if user.is_support_admin else SenderType.CUSTOMER
    return SupportChatService.send_message(conversation.id, user, sender_type, text)


# =============================================================================
# open_conversation
# =============================================================================


class TestOpenConversation:
    def test_creates_conversation_on_first_open(self, customer):
        result = SupportChatService.open_conversation(customer)

        assert result.success is True
        conversation, unread = result.data
        assert unread == 0
        assert conversation.customer == customer
        assert conversation.customer_display_name == "Alice"
        assert conversation.is_open is True
        assert conversation.last_message_preview == "Conversation started"
        assert conversation.last_customer_read_at is not None

    def test_opening_timestamps_match_creation(self, customer):
        conversation, _ = SupportChatService.open_conversation(customer).data

        conversation.refresh_from_db()
        assert conversation.created_at == conversation.last_message_at
        assert conversation.created_at == conversation.last_customer_read_at

    def test_email_fallback_name_is_cut_to_column_length(self, db):
        """
        Given a customer without a display name and a very long email
        Then the name snapshot fits the column instead of failing the open
        """
        user = UserFactory(email=f"{'a' * 160}@example.com", display_name="")

        result = SupportChatService.open_conversation(user)

        assert result.success is True
        conversation, _ = result.data
        conversation.refresh_from_db()
        assert conversation.customer_display_name == "a" * 150
        conversation.full_clean()

    def test_returns_same_conversation_while_open(self, customer):
        """
        Why it matters: a customer has exactly one open thread with support.
        """
        first, _ = SupportChatService.open_conversation(customer).data
        second, _ = SupportChatService.open_conversation(customer).data

        assert first.id == second.id
        assert Conversation.objects.filter(customer=customer).count() == 1

    def test_recounts_unread_from_admin_messages_after_read_point(
        self, conversation, support_admin
    ):
        """
        The customer's unread count is derived from admin messages newer
        than last_customer_read_at, not trusted from the stored counter.
        """
        MessageFactory(
            conversation=conversation,
            sender_type=SenderType.ADMIN,
            sender=support_admin,
            created_at=timezone.now() + timedelta(seconds=1),
        )
        MessageFactory(
            conversation=conversation,
            sender_type=SenderType.ADMIN,
            sender=support_admin,
            created_at=timezone.now() + timedelta(seconds=2),
        )
        # Older than the read point: already seen
        MessageFactory(
            conversation=conversation,
            sender_type=SenderType.ADMIN,
            sender=support_admin,
            created_at=conversation.last_customer_read_at - timedelta(minutes=1),
        )
        # Customer messages never count for the customer
        MessageFactory(
            conversation=conversation,
            created_at=timezone.now() + timedelta(seconds=3),
        )

        reopened, unread = SupportChatService.open_conversation(conversation.customer).data

        assert reopened.id == conversation.id
        assert unread == 2
        conversation.refresh_from_db()
        assert conversation.unread_for_customer_count == 2

    def test_unread_is_zero_after_customer_read(self, conversation, customer, support_admin):
        send(conversation, support_admin, "Hello A")
        SupportChatService.mark_conversation_as_read(conversation.id, customer)

        _, unread = SupportChatService.open_conversation(customer).data

        assert unread == 0

    def test_new_admin_messages_after_read_are_counted(self, customer, support_admin):
        with freeze_time("2024-03-01 09:00:00") as frozen:
            conversation, _ = SupportChatService.open_conversation(customer).data
            frozen.tick(timedelta(minutes=1))
            send(conversation, support_admin, "Hello A")
            frozen.tick(timedelta(minutes=1))
            SupportChatService.mark_conversation_as_read(conversation.id, customer)
            frozen.tick(timedelta(minutes=1))
            send(conversation, support_admin, "Anything else?")

            _, unread = SupportChatService.open_conversation(customer).data

        assert unread == 1

    def test_message_at_read_instant_counts_as_read(self, customer, support_admin):
        """Only admin messages strictly after last_customer_read_at are unread."""
        with freeze_time("2024-03-01 09:00:00"):
            conversation, _ = SupportChatService.open_conversation(customer).data
            send(conversation, support_admin, "Hello A")

            _, unread = SupportChatService.open_conversation(customer).data

        assert unread == 0

    def test_creates_new_conversation_after_close(self, conversation, customer, support_admin):
        SupportChatService.close_conversation(conversation.id, support_admin)

        new_conversation, unread = SupportChatService.open_conversation(customer).data

        assert new_conversation.id != conversation.id
        assert new_conversation.is_open is True
        assert unread == 0

    def test_concurrent_open_returns_the_winner(self, customer):
        """
        Given another request created the open conversation between our
        lookup and our insert
        Then the unique constraint fires and the existing row is returned
        """
        winner = ConversationFactory(customer=customer)

        with mock.patch.object(
            SupportChatService, "_resume_open_conversation", side_effect=[None, winner]
        ), mock.patch.object(
            Conversation.objects, "create", side_effect=IntegrityError("duplicate key")
        ):
            result = SupportChatService.open_conversation(customer)

        conversation, _ = result.data
        assert conversation.id == winner.id


# =============================================================================
# get_admin_inbox
# =============================================================================


class TestGetAdminInbox:
    def test_lists_only_open_conversations(self, db):
        open_one = ConversationFactory()
        ConversationFactory(is_open=False, closed_at=timezone.now())

        inbox = SupportChatService.get_admin_inbox().data

        assert [c.id for c in inbox] == [open_one.id]

    def test_orders_by_last_message_descending(self, db):
        now = timezone.now()
        older = ConversationFactory(last_message_at=now - timedelta(hours=2))
        newest = ConversationFactory(last_message_at=now)
        middle = ConversationFactory(last_message_at=now - timedelta(hours=1))

        inbox = SupportChatService.get_admin_inbox().data

        assert [c.id for c in inbox] == [newest.id, middle.id, older.id]

    def test_message_moves_conversation_to_top(self, db, support_admin):
        now = timezone.now()
        stale = ConversationFactory(last_message_at=now - timedelta(days=1))
        ConversationFactory(last_message_at=now - timedelta(hours=1))

        send(stale, stale.customer, "Still waiting")

        inbox = SupportChatService.get_admin_inbox().data
        assert inbox[0].id == stale.id


# =============================================================================
# get_conversation / get_conversation_messages
# =============================================================================


class TestGetConversation:
    def test_owner_can_read(self, conversation, customer):
        result = SupportChatService.get_conversation(conversation.id, customer)

        assert result.success is True
        assert result.data.id == conversation.id

    def test_admin_can_read(self, conversation, support_admin):
        assert SupportChatService.get_conversation(conversation.id, support_admin).success

    def test_other_customer_is_forbidden(self, conversation, other_customer):
        result = SupportChatService.get_conversation(conversation.id, other_customer)

        assert result.success is False
        assert result.error_code == "FORBIDDEN"

    def test_missing_conversation_is_not_found(self, customer):
        result = SupportChatService.get_conversation(
            "5f0c7a7e-0000-4000-8000-000000000000", customer
        )

        assert result.error_code == "CONVERSATION_NOT_FOUND"

    def test_malformed_id_is_not_found(self, customer):
        result = SupportChatService.get_conversation("not-a-uuid", customer)

        assert result.error_code == "CONVERSATION_NOT_FOUND"


class TestGetConversationMessages:
    def test_returns_messages_in_send_order(self, conversation, customer, support_admin):
        send(conversation, customer, "one")
        send(conversation, support_admin, "two")
        send(conversation, customer, "three")

        result = SupportChatService.get_conversation_messages(conversation.id, customer)

        assert [m.text for m in result.data] == ["one", "two", "three"]

    def test_other_customer_is_forbidden(self, conversation, other_customer):
        result = SupportChatService.get_conversation_messages(conversation.id, other_customer)

        assert result.error_code == "FORBIDDEN"

    def test_admin_can_read_any_transcript(self, conversation, customer, support_admin):
        send(conversation, customer, "hi")

        result = SupportChatService.get_conversation_messages(conversation.id, support_admin)

        assert [m.text for m in result.data] == ["hi"]


# =============================================================================
# send_message
# =============================================================================


class TestSendMessage:
    def test_customer_send_increments_admin_unread(self, conversation, customer):
        result = send(conversation, customer, "My order is late")

        assert result.success is True
        conversation.refresh_from_db()
        assert conversation.unread_for_admin_count == 1
        assert conversation.unread_for_customer_count == 0
        assert conversation.last_message_preview == "My order is late"
        assert conversation.last_message_sender == SenderType.CUSTOMER

    def test_admin_send_increments_customer_unread(self, conversation, support_admin):
        send(conversation, support_admin, "Hello A")

        conversation.refresh_from_db()
        assert conversation.unread_for_customer_count == 1
        assert conversation.unread_for_admin_count == 0
        assert conversation.last_message_preview == "Hello A"

    def test_other_conversations_are_unaffected(self, conversation, customer, other_customer):
        other, _ = SupportChatService.open_conversation(other_customer).data

        send(conversation, customer, "hi")

        other.refresh_from_db()
        assert other.unread_for_admin_count == 0
        assert other.last_message_preview == "Conversation started"

    def test_persists_message_fields(self, conversation, customer):
        message = send(conversation, customer, "hello").data

        stored = Message.objects.get(pk=message.pk)
        assert stored.conversation_id == conversation.id
        assert stored.sender == customer
        assert stored.sender_type == SenderType.CUSTOMER
        assert stored.text == "hello"

    def test_message_timestamp_matches_last_message_at(self, conversation, customer):
        message = send(conversation, customer, "hello").data

        conversation.refresh_from_db()
        assert conversation.last_message_at == message.created_at

    def test_long_text_is_stored_whole_with_truncated_preview(self, conversation, customer):
        text = "a" * 1500

        message = send(conversation, customer, text).data

        conversation.refresh_from_db()
        assert Message.objects.get(pk=message.pk).text == text
        assert conversation.last_message_preview == "a" * 200

    def test_returned_message_carries_updated_conversation(self, conversation, customer):
        message = send(conversation, customer, "hi").data

        assert message.conversation.unread_for_admin_count == 1

    def test_customer_cannot_send_to_someone_elses_conversation(
        self, conversation, other_customer
    ):
        result = send(conversation, other_customer, "let me in")

        assert result.error_code == "FORBIDDEN"
        assert not Message.objects.exists()

    def test_any_admin_can_send(self, conversation, second_admin):
        assert send(conversation, second_admin, "Covering for Dana").success

    def test_missing_conversation_is_not_found(self, customer):
        result = SupportChatService.send_message(
            "5f0c7a7e-0000-4000-8000-000000000000", customer, SenderType.CUSTOMER, "hi"
        )

        assert result.error_code == "CONVERSATION_NOT_FOUND"

    def test_closed_conversation_rejects_messages(self, conversation, customer, support_admin):
        SupportChatService.close_conversation(conversation.id, support_admin)

        result = send(conversation, customer, "hello?")

        assert result.error_code == "CONVERSATION_CLOSED"
        assert not Message.objects.exists()

    def test_scenario_admin_greets_customer_reads_and_replies(
        self, customer, support_admin
    ):
        """
        Customer A opens C1; admin sends "Hello A" -> unread for customer 1,
        preview "Hello A"; A marks read -> 0; A sends "Thanks" -> unread for
        admin 1.
        """
        c1, _ = SupportChatService.open_conversation(customer).data

        send(c1, support_admin, "Hello A")
        c1.refresh_from_db()
        assert c1.unread_for_customer_count == 1
        assert c1.last_message_preview == "Hello A"

        SupportChatService.mark_conversation_as_read(c1.id, customer)
        c1.refresh_from_db()
        assert c1.unread_for_customer_count == 0

        send(c1, customer, "Thanks")
        c1.refresh_from_db()
        assert c1.unread_for_admin_count == 1


@pytest.mark.django_db(transaction=True)
class TestConcurrentSends:
    SENDERS = 8

    def test_parallel_customer_sends_keep_every_increment(self, conversation, customer):
        """
        Given several requests sending to one conversation at the same time
        Then every send succeeds and the admin counter counts each of them
        """
        barrier = threading.Barrier(self.SENDERS)
        errors = []

        def worker(n):
            try:
                barrier.wait()
                result = send(conversation, customer, f"message {n}")
                if not result:
                    errors.append(result.error_code)
            except Exception as exc:
                errors.append(repr(exc))
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(self.SENDERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        conversation.refresh_from_db()
        assert conversation.unread_for_admin_count == self.SENDERS
        assert conversation.messages.count() == self.SENDERS


# =============================================================================
# mark_conversation_as_read
# =============================================================================


class TestMarkConversationAsRead:
    def test_admin_read_clears_admin_counter(self, conversation, customer, support_admin):
        send(conversation, customer, "one")
        send(conversation, customer, "two")

        result = SupportChatService.mark_conversation_as_read(conversation.id, support_admin)

        assert result.success is True
        assert result.data.unread_for_admin_count == 0

    def test_admin_read_leaves_customer_read_point(self, conversation, support_admin):
        read_point = conversation.last_customer_read_at

        SupportChatService.mark_conversation_as_read(conversation.id, support_admin)

        conversation.refresh_from_db()
        assert conversation.last_customer_read_at == read_point

    def test_customer_read_clears_counter_and_sets_read_point(
        self, conversation, customer, support_admin
    ):
        send(conversation, support_admin, "Hello A")

        with freeze_time("2030-06-01 12:00:00"):
            SupportChatService.mark_conversation_as_read(conversation.id, customer)
            read_at = timezone.now()

        conversation.refresh_from_db()
        assert conversation.unread_for_customer_count == 0
        assert conversation.last_customer_read_at == read_at

    def test_other_customer_is_forbidden(self, conversation, other_customer):
        result = SupportChatService.mark_conversation_as_read(conversation.id, other_customer)

        assert result.error_code == "FORBIDDEN"


# =============================================================================
# close_conversation
# =============================================================================


class TestCloseConversation:
    def test_admin_closes_conversation(self, conversation, support_admin):
        result = SupportChatService.close_conversation(conversation.id, support_admin)

        assert result.success is True
        conversation.refresh_from_db()
        assert conversation.is_open is False
        assert conversation.closed_at is not None

    def test_closed_conversation_leaves_inbox(self, conversation, support_admin):
        SupportChatService.close_conversation(conversation.id, support_admin)

        assert SupportChatService.get_admin_inbox().data == []

    def test_closing_twice_is_a_noop(self, conversation, support_admin):
        SupportChatService.close_conversation(conversation.id, support_admin)
        conversation.refresh_from_db()
        first_closed_at = conversation.closed_at

        result = SupportChatService.close_conversation(conversation.id, support_admin)

        assert result.success is True
        assert result.data.closed_at == first_closed_at

    def test_customer_cannot_close_own_conversation(self, conversation, customer):
        result = SupportChatService.close_conversation(conversation.id, customer)

        assert result.error_code == "FORBIDDEN"
        conversation.refresh_from_db()
        assert conversation.is_open is True

    def test_missing_conversation_is_not_found(self, support_admin):
        result = SupportChatService.close_conversation(
            "5f0c7a7e-0000-4000-8000-000000000000", support_admin
        )

        assert result.error_code == "CONVERSATION_NOT_FOUND"


# =============================================================================
# can_access_conversation
# =============================================================================


class TestCanAccessConversation:
    @pytest.mark.parametrize("who", ["customer", "support_admin"])
    def test_owner_and_admin_allowed(self, request, conversation, who):
        user = request.getfixturevalue(who)

        result = SupportChatService.can_access_conversation(conversation.id, user)

        assert result.success is True
        assert result.data is None

    def test_other_customer_denied(self, conversation, other_customer):
        result = SupportChatService.can_access_conversation(conversation.id, other_customer)

        assert result.error_code == "FORBIDDEN"
