"""
API views for the support chat.

URL Structure:
    /api/support/conversation/open              POST  (customer or admin)
    /api/admin/inbox                            GET   (admin)
    /api/chat/conversations/{id}                GET   (owner or admin)
    /api/chat/conversations/{id}/messages       GET   (owner or admin)
    /api/chat/conversations/{id}/read           POST  (owner or admin)
    /api/chat/conversations/{id}/close          POST  (admin)
    /api/chat/messages/send                     POST  (owner or admin)

Design Decisions:
    - Views validate input, call SupportChatService and translate its error
      codes to HTTP statuses in one place (error_response)
    - Successful mutations hand the result to ChatBroadcaster, which
      publishes after commit
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.broadcast import ChatBroadcaster
from chat.constants import ERROR_CODES
from chat.models import SenderType
from chat.permissions import IsSupportAdmin
from chat.serializers import (
    ConversationDetailSerializer,
    ConversationSummarySerializer,
    MessageSerializer,
    OpenConversationResponseSerializer,
    SendMessageSerializer,
    StatusSerializer,
)
from chat.services import SupportChatService

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ERROR_CODES.CONVERSATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ERROR_CODES.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ERROR_CODES.CONVERSATION_CLOSED: status.HTTP_409_CONFLICT,
}

ERROR_RESPONSES = {
    403: OpenApiResponse(description="Not the conversation owner or an admin"),
    404: OpenApiResponse(description="Conversation not found"),
}


def error_response(result) -> Response:
    """Translate a failed ServiceResult into an error Response."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


class OpenConversationView(APIView):
    """
    POST /api/support/conversation/open

    Resume the caller's open conversation or start a new one.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="open_support_conversation",
        summary="Open support conversation",
        description=(
            "Returns the caller's open conversation, creating it on first use. "
            "unread_count is the number of admin messages the customer has not read."
        ),
        request=None,
        responses={200: OpenConversationResponseSerializer},
        tags=["Support"],
    )
    def post(self, request):
        result = SupportChatService.open_conversation(request.user)
        conversation, unread = result.data
        return Response(
            {"conversation_id": str(conversation.id), "unread_count": unread},
            status=status.HTTP_200_OK,
        )


class AdminInboxView(APIView):
    """GET /api/admin/inbox - open conversations, most recent activity first."""

    permission_classes = [IsAuthenticated, IsSupportAdmin]

    @extend_schema(
        operation_id="admin_inbox",
        summary="Admin inbox",
        responses={200: ConversationSummarySerializer(many=True)},
        tags=["Support"],
    )
    def get(self, request):
        result = SupportChatService.get_admin_inbox()
        serializer = ConversationSummarySerializer(result.data, many=True)
        return Response(serializer.data)


class ConversationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={200: ConversationDetailSerializer, **ERROR_RESPONSES},
        tags=["Chat"],
    )
    def get(self, request, conversation_id):
        result = SupportChatService.get_conversation(conversation_id, request.user)
        if not result:
            return error_response(result)
        return Response(ConversationDetailSerializer(result.data).data)


class ConversationMessagesView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_conversation_messages",
        summary="List conversation messages",
        description="Full transcript ordered by send time (oldest first).",
        responses={200: MessageSerializer(many=True), **ERROR_RESPONSES},
        tags=["Chat"],
    )
    def get(self, request, conversation_id):
        result = SupportChatService.get_conversation_messages(
            conversation_id, request.user
        )
        if not result:
            return error_response(result)
        return Response(MessageSerializer(result.data, many=True).data)


class SendMessageView(APIView):
    """
    POST /api/chat/messages/send

    Sender type follows the caller's role: admins send as admin,
    everybody else as customer.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=SendMessageSerializer,
        responses={
            200: MessageSerializer,
            400: OpenApiResponse(description="Empty or too long text, malformed id"),
            409: OpenApiResponse(description="Conversation is closed"),
            **ERROR_RESPONSES,
        },
        tags=["Chat"],
    )
    def post(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        sender_type = (
            SenderType.ADMIN if request.user.is_support_admin else SenderType.CUSTOMER
        )
        result = SupportChatService.send_message(
            conversation_id=serializer.validated_data["conversation_id"],
            sender=request.user,
            sender_type=sender_type,
            text=serializer.validated_data["text"],
        )
        if not result:
            return error_response(result)

        message = result.data
        ChatBroadcaster.message_created(message, message.conversation)
        return Response(MessageSerializer(message).data, status=status.HTTP_200_OK)


class MarkConversationReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        description="Resets the caller's unread counter for this conversation.",
        request=None,
        responses={200: StatusSerializer, **ERROR_RESPONSES},
        tags=["Chat"],
    )
    def post(self, request, conversation_id):
        result = SupportChatService.mark_conversation_as_read(
            conversation_id, request.user
        )
        if not result:
            return error_response(result)

        ChatBroadcaster.conversation_read(result.data)
        return Response({"status": "read"})


class CloseConversationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="close_conversation",
        summary="Close conversation",
        description=(
            "Admin only. Closed conversations leave the inbox and reject new "
            "messages; the customer's next open starts a new conversation."
        ),
        request=None,
        responses={200: ConversationSummarySerializer, **ERROR_RESPONSES},
        tags=["Chat"],
    )
    def post(self, request, conversation_id):
        result = SupportChatService.close_conversation(conversation_id, request.user)
        if not result:
            return error_response(result)

        ChatBroadcaster.conversation_closed(result.data)
        return Response(ConversationSummarySerializer(result.data).data)
