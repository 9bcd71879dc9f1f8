"""
WebSocket authentication middleware.

Resolves ``scope["user"]`` from a SimpleJWT access token before the
connection reaches the consumer. Browsers cannot set headers on a
WebSocket handshake, so the token may also travel in the query string or
as a subprotocol.

Token sources (in order of precedence):
    1. Header: Authorization: Bearer <jwt_token>
    2. Query string: ws://host/ws/support/?token=<jwt_token>
       (access_token=<jwt_token> is accepted too)
    3. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

A missing, invalid or expired token, or a token for an inactive or deleted
user, leaves the connection anonymous; the consumer then rejects it.

Usage in config/asgi.py:
    application = ProtocolTypeRouter({
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

QUERY_TOKEN_PARAMS = ("token", "access_token")
SUBPROTOCOL_NAME = "jwt"


class JWTAuthMiddleware(BaseMiddleware):
    """JWT authentication for WebSocket connections."""

    async def __call__(self, scope, receive, send):
        scope = dict(scope)

        token = (
            self._get_token_from_header(scope)
            or self._get_token_from_query(scope)
            or self._get_token_from_subprotocol(scope)
        )
        if token:
            scope["user"] = await self._get_user_from_token(token)
        else:
            scope["user"] = AnonymousUser()

        return await super().__call__(scope, receive, send)

    @staticmethod
    def _get_token_from_header(scope) -> str | None:
        for name, value in scope.get("headers", []):
            if name.lower() != b"authorization":
                continue
            parts = value.decode("latin-1").split()
            if len(parts) == 2 and parts[0] in api_settings.AUTH_HEADER_TYPES:
                return parts[1]
        return None

    @staticmethod
    def _get_token_from_query(scope) -> str | None:
        query_string = scope.get("query_string", b"").decode()
        params = parse_qs(query_string)
        for param in QUERY_TOKEN_PARAMS:
            values = params.get(param)
            if values:
                return values[0]
        return None

    @staticmethod
    def _get_token_from_subprotocol(scope) -> str | None:
        """Expects: Sec-WebSocket-Protocol: jwt, <token>"""
        subprotocols = scope.get("subprotocols", [])

        if len(subprotocols) >= 2 and subprotocols[0] == SUBPROTOCOL_NAME:
            return subprotocols[1]

        return None

    @database_sync_to_async
    def _get_user_from_token(self, token: str):
        User = get_user_model()

        try:
            access_token = AccessToken(token)
            user_id = access_token[api_settings.USER_ID_CLAIM]
            user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
        except TokenError as e:
            logger.warning(f"Invalid JWT on WebSocket handshake: {e}")
            return AnonymousUser()
        except KeyError:
            logger.warning("WebSocket token has no user id claim")
            return AnonymousUser()
        except User.DoesNotExist:
            logger.warning("WebSocket token refers to a missing user")
            return AnonymousUser()

        if not user.is_active:
            logger.warning(f"Inactive user attempted WebSocket connection: {user.pk}")
            return AnonymousUser()

        return user
