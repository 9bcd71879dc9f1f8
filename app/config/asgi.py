"""
ASGI config for the support chat service.

Exposes the ASGI callable as a module-level variable named `application`.
HTTP requests go to Django; WebSocket connections on ws/support/ go through
origin validation and JWT authentication before reaching the support chat
consumer.

Run with:
    uvicorn config.asgi:application --app-dir app
"""

import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module for the ASGI application
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # 1. AllowedHostsOriginValidator - origin must match ALLOWED_HOSTS
        # 2. JWTAuthMiddleware - resolves scope["user"] from the access token
        # 3. URLRouter - dispatches to the consumer
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
