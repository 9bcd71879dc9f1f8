"""
Tests for the support chat app.

- test_models.py: Conversation aggregate methods, constraints, ordering
- test_services.py: SupportChatService operations and error codes
- test_views.py: HTTP endpoints, status codes and error bodies
- test_broadcast.py: Group fan-out after commit, layer failures
- test_consumers.py: WebSocket connect, join/leave and live delivery
- test_middleware.py: JWT resolution for WebSocket handshakes

Usage:
    pytest chat/tests/
    pytest -m e2e chat/tests/test_consumers.py
"""
