"""
WSGI config for the support chat service.

WebSockets need the ASGI entry point (config.asgi). This callable only serves
the HTTP API and admin, for deployments behind a plain WSGI server.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
