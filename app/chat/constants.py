"""
Constants for the support chat.

Import example:
    from chat.constants import CHAT_GROUPS, ERROR_CODES, MESSAGE_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Limits applied to message text and conversation previews."""

    MAX_TEXT_LENGTH: Final[int] = 2000  # Characters
    MIN_TEXT_LENGTH: Final[int] = 1

    # Denormalized preview stored on the conversation
    PREVIEW_LENGTH: Final[int] = 200
    OPENING_PREVIEW: Final[str] = "Conversation started"

    # Customer name snapshot; longer names (email fallback) are cut
    DISPLAY_NAME_LENGTH: Final[int] = 150


# =============================================================================
# Service Error Codes
# =============================================================================


class ERROR_CODES:
    """Machine-readable error codes returned in ServiceResult.error_code."""

    CONVERSATION_NOT_FOUND: Final[str] = "CONVERSATION_NOT_FOUND"
    FORBIDDEN: Final[str] = "FORBIDDEN"
    CONVERSATION_CLOSED: Final[str] = "CONVERSATION_CLOSED"

    # WebSocket-only
    INVALID_MESSAGE: Final[str] = "INVALID_MESSAGE"
    UNKNOWN_TYPE: Final[str] = "UNKNOWN_TYPE"


# =============================================================================
# Channel Layer Groups
# =============================================================================


class CHAT_GROUPS:
    """
    Channel layer group names.

    Group names may only contain ASCII alphanumerics, hyphens, underscores
    and periods, hence the dotted form.
    """

    ADMINS: Final[str] = "admins"

    @staticmethod
    def user(user_id) -> str:
        return f"user.{user_id}"

    @staticmethod
    def conversation(conversation_id) -> str:
        return f"conv.{conversation_id}"


# =============================================================================
# WebSocket Close Codes
# =============================================================================


class WS_CLOSE_CODES:
    """Application close codes (4000-4999 range)."""

    UNAUTHENTICATED: Final[int] = 4001
