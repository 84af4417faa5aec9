"""Domain error hierarchy shared by services and adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from dogrula.domain.model import RecordKind


class DirectoryError(Exception):
    """Root of every error raised by the directory core."""


class ValidationError(DirectoryError):
    """Client-side input problem; carries per-field messages when available."""

    def __init__(self, message: str, *, fields: Mapping[str, str] | None = None) -> None:
        super().__init__(message)
        self.fields: dict[str, str] = dict(fields or {})


class NotFoundError(DirectoryError):
    def __init__(self, kind: RecordKind, entity_id: UUID | str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(DirectoryError):
    """The requested change contradicts the current state of the directory."""


class InvalidTransitionError(ConflictError):
    """A workflow state change that is not allowed from the current status."""


class IdentityConflictError(ConflictError):
    """A canonical phone or handle would be both verified and blacklisted."""

    def __init__(self, message: str, *, existing_kind: RecordKind, existing_id: UUID) -> None:
        super().__init__(message)
        self.existing_kind = existing_kind
        self.existing_id = existing_id


class UniquenessViolation(DirectoryError):  # noqa: N818
    """Raised by persistence adapters when a unique index rejects a write."""


class PersistenceError(DirectoryError):
    """Any other storage failure, surfaced after the transaction was rolled back."""
