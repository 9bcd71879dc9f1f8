"""
URL configuration for the support chat API.

Mounted under /api/ in config.urls. Paths carry no trailing slash.
"""

from django.urls import path

from chat.views import (
    AdminInboxView,
    CloseConversationView,
    ConversationDetailView,
    ConversationMessagesView,
    MarkConversationReadView,
    OpenConversationView,
    SendMessageView,
)

app_name = "chat"

urlpatterns = [
    path(
        "support/conversation/open",
        OpenConversationView.as_view(),
        name="conversation-open",
    ),
    path("admin/inbox", AdminInboxView.as_view(), name="admin-inbox"),
    path(
        "chat/conversations/<uuid:conversation_id>",
        ConversationDetailView.as_view(),
        name="conversation-detail",
    ),
    path(
        "chat/conversations/<uuid:conversation_id>/messages",
        ConversationMessagesView.as_view(),
        name="conversation-messages",
    ),
    path(
        "chat/conversations/<uuid:conversation_id>/read",
        MarkConversationReadView.as_view(),
        name="conversation-read",
    ),
    path(
        "chat/conversations/<uuid:conversation_id>/close",
        CloseConversationView.as_view(),
        name="conversation-close",
    ),
    path("chat/messages/send", SendMessageView.as_view(), name="message-send"),
]
