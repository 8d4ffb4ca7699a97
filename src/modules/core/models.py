"""Base abstract models shared by every module.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``SingleDefaultModel``: adds an ``is_default`` flag of which at most one
  row per scope may be set (default order status, default customer address).

``SingleDefaultModel.save()`` is the single write path for the flag: it
locks every row of the scope, clears the current default and sets the new
one inside the same transaction.  Subclasses back this with a partial unique
constraint so the database rejects any writer that bypasses ``save()``.
"""

from __future__ import annotations

from typing import Any, ClassVar

import structlog
import uuid6
from django.db import models, transaction
from django.utils import timezone

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Keep ``updated_at`` fresh when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Singleton default flag
# ---------------------------------------------------------------------------


class SingleDefaultModel(BaseModel):
    """Abstract base for rows where only one per scope may be the default.

    ``default_scope`` lists the attribute names (use ``attname``, e.g.
    ``customer_id``) that partition the table.  An empty tuple means the
    whole table is one scope.
    """

    default_scope: ClassVar[tuple[str, ...]] = ()

    is_default = models.BooleanField(default=False)

    class Meta:
        abstract = True

    def _scope_filter(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.default_scope}

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.is_default:
            super().save(*args, **kwargs)
            return

        manager = type(self)._default_manager
        scope = self._scope_filter()
        with transaction.atomic():
            # Lock the whole scope so two writers promoting different rows
            # serialize on the same set of locks.
            list(
                manager.select_for_update()
                .filter(**scope)
                .order_by("pk")
                .values_list("pk", flat=True)
            )
            cleared = (
                manager.filter(is_default=True, **scope)
                .exclude(pk=self.pk)
                .update(is_default=False, updated_at=timezone.now())
            )
            super().save(*args, **kwargs)

        if cleared:
            logger.info(
                "default_flag.moved",
                model=type(self).__name__,
                new_default_id=str(self.pk),
                cleared=cleared,
            )

    def mark_as_default(self) -> None:
        """Promote this row to be the default of its scope."""
        self.is_default = True
        self.save(update_fields=["is_default"])
