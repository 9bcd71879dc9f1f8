"""
Permission classes for the support chat API.

Object-level access (owner or admin) is decided by SupportChatService, which
reports it as FORBIDDEN; these classes only gate whole endpoints by role.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsSupportAdmin(permissions.BasePermission):
    """Allows access only to users with the admin support role."""

    message = "Only support admins can perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_support_admin)
