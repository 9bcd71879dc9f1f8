"""
WebSocket consumer for the support chat.

One connection per client at ws/support/. On connect the socket joins its
user group and, for admins, the admins group. Clients subscribe to a single
conversation's live events with an explicit join.

Authentication:
    chat.middleware.JWTAuthMiddleware attaches the user to scope["user"].
    Anonymous connections are closed with code 4001.

Message Types (from client):
    - join_conversation: {"type": "join_conversation", "conversation_id": "<uuid>"}
    - leave_conversation: {"type": "leave_conversation", "conversation_id": "<uuid>"}
    - ping: {"type": "ping"}

Message Types (to client):
    - message_created: {"type": "message_created", "message": {...}}
    - conversation_upserted: {"type": "conversation_upserted", "conversation": {...}}
    - joined / left: acknowledgements carrying conversation_id
    - pong
    - error: {"type": "error", "error_code": "...", "error": "..."}
"""

from __future__ import annotations

import json
import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import CHAT_GROUPS, ERROR_CODES, WS_CLOSE_CODES
from chat.middleware import SUBPROTOCOL_NAME
from chat.services import SupportChatService

logger = logging.getLogger(__name__)


class SupportChatConsumer(AsyncJsonWebsocketConsumer):
    """
    Realtime delivery of support chat events.

    Attributes:
        user_group: user.<id> group for this connection's user
        is_admin: Whether the connection joined the admins group
        conversation_groups: conv.<id> groups joined explicitly
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_group: str | None = None
        self.is_admin = False
        self.conversation_groups: set[str] = set()

    async def connect(self):
        user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated support chat connection")
            await self.close(code=WS_CLOSE_CODES.UNAUTHENTICATED)
            return

        self.user_group = CHAT_GROUPS.user(user.pk)
        await self.channel_layer.group_add(self.user_group, self.channel_name)

        self.is_admin = user.is_support_admin
        if self.is_admin:
            await self.channel_layer.group_add(CHAT_GROUPS.ADMINS, self.channel_name)

        # Echo the subprotocol when the token was sent that way
        subprotocol = (
            SUBPROTOCOL_NAME
            if SUBPROTOCOL_NAME in self.scope.get("subprotocols", [])
            else None
        )
        await self.accept(subprotocol=subprotocol)
        logger.info(
            f"{'Admin' if self.is_admin else 'Customer'} {user.pk} connected to support chat"
        )

    async def disconnect(self, close_code):
        groups = list(self.conversation_groups)
        if self.is_admin:
            groups.append(CHAT_GROUPS.ADMINS)
        if self.user_group:
            groups.append(self.user_group)

        for group in groups:
            await self.channel_layer.group_discard(group, self.channel_name)
        self.conversation_groups.clear()

        if self.user_group:
            logger.info(
                f"User {self.scope['user'].pk} disconnected from support chat "
                f"(code {close_code})"
            )

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        # The base class raises on frames without text, which drops the socket
        if not text_data:
            await self._send_error(
                ERROR_CODES.INVALID_MESSAGE, "Expected a text frame with a JSON object"
            )
            return
        await super().receive(text_data=text_data, bytes_data=bytes_data, **kwargs)

    @classmethod
    async def decode_json(cls, text_data):
        try:
            return json.loads(text_data)
        except ValueError:
            return None

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a client frame by its ``type``.

        Malformed frames and unknown types are answered with an error frame;
        the connection stays open.
        """
        if not isinstance(content, dict):
            await self._send_error(ERROR_CODES.INVALID_MESSAGE, "Expected a JSON object")
            return

        message_type = content.get("type")
        if message_type == "join_conversation":
            await self._handle_join(content)
        elif message_type == "leave_conversation":
            await self._handle_leave(content)
        elif message_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self._send_error(
                ERROR_CODES.UNKNOWN_TYPE, f"Unknown message type: {message_type}"
            )

    async def _handle_join(self, content):
        conversation_id = self._parse_conversation_id(content)
        if conversation_id is None:
            await self._send_error(
                ERROR_CODES.INVALID_MESSAGE, "conversation_id must be a UUID"
            )
            return

        result = await self._can_access(conversation_id)
        if not result:
            await self._send_error(
                result.error_code, result.error, conversation_id=conversation_id
            )
            return

        group = CHAT_GROUPS.conversation(conversation_id)
        await self.channel_layer.group_add(group, self.channel_name)
        self.conversation_groups.add(group)

        logger.info(f"User {self.scope['user'].pk} joined conversation {conversation_id}")
        await self.send_json({"type": "joined", "conversation_id": conversation_id})

    async def _handle_leave(self, content):
        conversation_id = self._parse_conversation_id(content)
        if conversation_id is None:
            await self._send_error(
                ERROR_CODES.INVALID_MESSAGE, "conversation_id must be a UUID"
            )
            return

        group = CHAT_GROUPS.conversation(conversation_id)
        await self.channel_layer.group_discard(group, self.channel_name)
        self.conversation_groups.discard(group)

        logger.info(f"User {self.scope['user'].pk} left conversation {conversation_id}")
        await self.send_json({"type": "left", "conversation_id": conversation_id})

    # -------------------------------------------------------------------------
    # Channel layer event handlers (see chat.broadcast)
    # -------------------------------------------------------------------------

    async def chat_message_created(self, event):
        await self.send_json({"type": "message_created", "message": event["message"]})

    async def chat_conversation_upserted(self, event):
        await self.send_json(
            {"type": "conversation_upserted", "conversation": event["conversation"]}
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_conversation_id(content) -> str | None:
        """Canonical string form of content["conversation_id"], or None."""
        try:
            return str(uuid.UUID(str(content.get("conversation_id"))))
        except ValueError:
            return None

    async def _send_error(self, error_code: str, error: str, **extra):
        await self.send_json({"type": "error", "error_code": error_code, "error": error, **extra})

    @database_sync_to_async
    def _can_access(self, conversation_id: str):
        return SupportChatService.can_access_conversation(
            conversation_id, self.scope["user"]
        )
