"""
Base service layer patterns for business logic encapsulation.

This module provides the two building blocks every domain service uses:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging and transaction helpers

Service Layer Philosophy:
    Views handle HTTP concerns, models hold data and state transitions,
    services orchestrate persistence and authorization.

Pattern Comparison:
    - ServiceResult: expected failures (not found, forbidden, closed)
    - Exceptions: unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class TicketService(BaseService):
        @classmethod
        def close(cls, ticket_id, user) -> ServiceResult[Ticket]:
            with cls.atomic():
                ticket = Ticket.objects.select_for_update().filter(pk=ticket_id).first()
                if ticket is None:
                    return cls.fail("Ticket not found", "TICKET_NOT_FOUND")
                ...
            return ServiceResult.success(ticket)

    # In view
    result = TicketService.close(ticket_id, request.user)
    if not result:
        return Response(result.to_response(), status=404)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")
U = TypeVar("U")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling

    Usage:
        result = SupportChatService.get_conversation(conversation_id, user)
        if result.success:
            conversation = result.data
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
        """
        return cls(success=False, error=error, error_code=error_code)

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failed result to the API error body.

        Returns:
            {"error": <message>, "error_code": <code>}
        """
        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        return response

    def map(self, func: Callable[[T], U]) -> ServiceResult[U]:
        """
        Transform the data if successful; failures pass through unchanged.

        Example:
            result = SupportChatService.open_conversation(user)
            payload = result.map(lambda pair: {"conversation_id": pair[0].id})
        """
        if self.success:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless: use classmethods, return ServiceResult for
    expected failures and let unexpected exceptions propagate.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around django.db.transaction.atomic() that makes the
        transaction boundary explicit in service code. Row locks taken with
        select_for_update() inside the block are held until it exits.
        """
        with transaction.atomic():
            yield

    @classmethod
    def fail(cls, error: str, error_code: str, **context: Any) -> ServiceResult:
        """
        Log an expected failure at WARNING and return it as a ServiceResult.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code
            **context: Identifiers (user_id, conversation_id, ...) for the log line
        """
        details = " ".join(f"{key}={value}" for key, value in context.items())
        cls.get_logger().warning(f"{error_code}: {error} {details}".rstrip())
        return ServiceResult.failure(error, error_code)
