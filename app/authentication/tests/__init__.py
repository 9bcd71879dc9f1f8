"""
Tests for the authentication app.

- test_managers.py: UserManager create_user / create_superuser
- test_models.py: User role and display name helpers
- test_views.py: JWT token endpoints and custom claims

Usage:
    pytest authentication/tests/
"""
