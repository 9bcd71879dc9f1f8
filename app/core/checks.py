"""
Deployment configuration checks.

Registered with Django's system check framework, so they run on
``manage.py check``, ``migrate`` and ``runserver``. Each check reports a
Warning rather than an Error: local development runs on the defaults.
"""

from django.conf import settings
from django.core.checks import Tags, Warning, register

IN_MEMORY_CHANNEL_LAYER = "channels.layers.InMemoryChannelLayer"


@register(Tags.security, deploy=False)
def check_secret_key(app_configs, **kwargs):
    """The placeholder secret key must not be used with DEBUG off."""
    errors = []
    default_key = getattr(settings, "INSECURE_DEFAULT_SECRET_KEY", None)
    if not settings.DEBUG and settings.SECRET_KEY == default_key:
        errors.append(
            Warning(
                "SECRET_KEY is the built-in development key.",
                hint="Set the SECRET_KEY environment variable.",
                id="core.W001",
            )
        )
    return errors


@register(Tags.security)
def check_allowed_hosts(app_configs, **kwargs):
    errors = []
    if not settings.DEBUG and not settings.ALLOWED_HOSTS:
        errors.append(
            Warning(
                "ALLOWED_HOSTS is empty while DEBUG is off.",
                hint="Set ALLOWED_HOSTS to the public host names.",
                id="core.W002",
            )
        )
    return errors


@register()
def check_channel_layer(app_configs, **kwargs):
    """Realtime fan-out across processes needs a shared (Redis) channel layer."""
    errors = []
    layers = getattr(settings, "CHANNEL_LAYERS", {})
    backend = layers.get("default", {}).get("BACKEND")
    if backend is None:
        errors.append(
            Warning(
                "No default channel layer is configured.",
                hint="Set REDIS_URL to enable realtime delivery.",
                id="core.W003",
            )
        )
    elif backend == IN_MEMORY_CHANNEL_LAYER and not settings.DEBUG:
        errors.append(
            Warning(
                "The in-memory channel layer only delivers events within one process.",
                hint="Set REDIS_URL when running more than one worker.",
                id="core.W004",
            )
        )
    return errors
