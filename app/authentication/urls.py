"""
URL configuration for authentication app.

URL structure:
    /api/auth/token            - Obtain access/refresh pair (email + password)
    /api/auth/token/refresh    - Exchange a refresh token for a new access token
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

app_name = "authentication"

urlpatterns = [
    path("token", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh", TokenRefreshView.as_view(), name="token_refresh"),
]
