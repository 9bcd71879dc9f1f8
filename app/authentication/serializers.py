"""
Serializers for authentication.

SupportTokenObtainPairSerializer is wired in through
SIMPLE_JWT["TOKEN_OBTAIN_SERIALIZER"], so the stock SimpleJWT views issue
tokens carrying the claims the clients need to render the UI.
"""

from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class SupportTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Add ``role`` and ``display_name`` claims to issued tokens."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        token["display_name"] = user.get_full_name()
        return token
