from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Email accounts with a support role (customer or admin)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Accounts"
