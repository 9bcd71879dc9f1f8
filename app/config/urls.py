"""
Root URL configuration for the support chat service.

URL Structure:
    /health/                                   - Health check (load balancers, Docker)
    /schema/                                   - OpenAPI schema
    /docs/                                     - ReDoc API documentation
    /admin/                                    - Django admin interface
    /api/auth/token                            - Obtain JWT pair (email/password)
    /api/auth/token/refresh                    - Refresh access token
    /api/support/conversation/open             - Customer opens/resumes a conversation
    /api/admin/inbox                           - Admin inbox of open conversations
    /api/chat/conversations/{id}               - Conversation detail
    /api/chat/conversations/{id}/messages      - Conversation transcript
    /api/chat/conversations/{id}/read          - Mark conversation read
    /api/chat/conversations/{id}/close         - Close conversation (admin)
    /api/chat/messages/send                    - Send a message
    ws/support/                                - WebSocket endpoint (see chat.routing)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API Routes
# =============================================================================
api_patterns = [
    path("auth/", include("authentication.urls")),
    path("", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check
    path("health/", health_check, name="health_check"),
    # API
    path("api/", include(api_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Support Chat Admin"
admin.site.site_title = "Support Chat"
admin.site.index_title = "Support administration"
