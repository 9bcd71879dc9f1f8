"""
Authentication application.

Email-based user accounts with a support role, and JWT issuance for the
HTTP API and the support WebSocket.

Usage:
    from authentication.models import User
"""
