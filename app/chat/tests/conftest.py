"""
Test configuration and fixtures for chat tests.

This module provides:
- Customer and admin users
- An open conversation owned by ``customer``
- Authenticated API clients
- Channel layer helpers for asserting broadcasts

Usage:
    def test_example(conversation, customer_client):
        response = customer_client.get(f"/api/chat/conversations/{conversation.id}")
        assert response.status_code == 200
"""

import asyncio

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import AdminFactory, UserFactory
from chat.services import SupportChatService


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def customer(db):
    """Customer who owns ``conversation``."""
    return UserFactory(display_name="Alice")


@pytest.fixture
def other_customer(db):
    """Customer with no access to ``conversation``."""
    return UserFactory(display_name="Bob")


@pytest.fixture
def support_admin(db):
    return AdminFactory(display_name="Dana")


@pytest.fixture
def second_admin(db):
    return AdminFactory(display_name="Eve")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(customer):
    """Open conversation for ``customer``, created through the service."""
    conversation, _ = SupportChatService.open_conversation(customer).data
    return conversation


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
            response = client.get("/api/admin/inbox")
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


@pytest.fixture
def customer_client(authenticated_client_factory, customer):
    return authenticated_client_factory(customer)


@pytest.fixture
def other_customer_client(authenticated_client_factory, other_customer):
    return authenticated_client_factory(other_customer)


@pytest.fixture
def admin_client(authenticated_client_factory, support_admin):
    return authenticated_client_factory(support_admin)


# =============================================================================
# Channel Layer Helpers
# =============================================================================


class GroupListener:
    """
    A channel subscribed to some groups, for asserting broadcasts.

    Call ``events()`` once, after the action under test.
    """

    def __init__(self, *groups: str):
        self.layer = get_channel_layer()
        self.channel = async_to_sync(self.layer.new_channel)()
        for group in groups:
            async_to_sync(self.layer.group_add)(group, self.channel)

    def events(self, timeout: float = 0.1) -> list[dict]:
        async def _drain():
            received = []
            while True:
                try:
                    received.append(
                        await asyncio.wait_for(self.layer.receive(self.channel), timeout)
                    )
                except asyncio.TimeoutError:
                    return received

        return async_to_sync(_drain)()


@pytest.fixture
def listen():
    """
    Subscribe a fresh channel to the given groups.

    Usage:
        def test_example(listen):
            admins = listen("admins")
            ...
            assert [e["type"] for e in admins.events()] == [...]
    """
    return GroupListener
