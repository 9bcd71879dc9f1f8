"""
WebSocket URL routing for the support chat.

URL Patterns:
    ws/support/ - Support chat events for the authenticated user

Authentication:
    See chat.middleware for the accepted token locations.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/support/", consumers.SupportChatConsumer.as_asgi()),
]
