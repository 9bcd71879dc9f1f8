"""
Abstract base model shared by the domain apps.

BaseModel adds creation and modification timestamps. Primary key mixins live
in core.model_mixins and are listed before BaseModel in the bases.

Usage:
    from core.model_mixins import UUIDPrimaryKeyMixin
    from core.models import BaseModel

    class Conversation(UUIDPrimaryKeyMixin, BaseModel):
        ...
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract model with created_at / updated_at.

    created_at is set once on insert and indexed for time-ordered queries;
    updated_at is refreshed on every save() that includes it.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
