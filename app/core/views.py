"""
Core views providing infrastructure endpoints.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for Docker, Kubernetes probes and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - channel_layer: "connected", "disconnected" or "not_configured"

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    The channel layer is reported but does not fail the check; HTTP keeps
    working without realtime delivery.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        health_status["channel_layer"] = "not_configured"
    else:
        try:
            async_to_sync(channel_layer.group_send)(
                "health", {"type": "health.ping"}
            )
            health_status["channel_layer"] = "connected"
        except Exception:
            logger.warning("Health check: channel layer unreachable", exc_info=True)
            health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
