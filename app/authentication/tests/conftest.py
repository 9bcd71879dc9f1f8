"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(customer, api_client):
        response = api_client.post("/api/auth/token", {...})
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AdminFactory, UserFactory


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def customer(db):
    return UserFactory(email="alice@example.com", display_name="Alice")


@pytest.fixture
def support_admin(db):
    return AdminFactory(email="dana@example.com", display_name="Dana")
