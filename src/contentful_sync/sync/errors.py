"""Exception hierarchy for the sync engine.

Every error that aborts a run derives from ``SyncError``.  The remote
errors keep the content type, identity key and attempted field map so
a failed run can be reproduced from the log alone.
"""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base class for fatal sync failures."""


class SchemaError(SyncError):
    """A content type cannot be reconciled against its remote schema."""

    def __init__(self, content_type: str, message: str) -> None:
        self.content_type = content_type
        super().__init__(f"Content type '{content_type}': {message}")


class _RemoteMutationError(SyncError):
    action = "apply"

    def __init__(
        self,
        content_type: str,
        key: Any,
        fields: dict[str, Any],
        cause: Exception,
    ) -> None:
        self.content_type = content_type
        self.key = key
        self.fields = fields
        self.cause = cause
        super().__init__(
            f"Failed to {self.action} {content_type} '{key}': {cause}"
        )


class RemoteCreateError(_RemoteMutationError):
    action = "create"


class RemoteUpdateError(_RemoteMutationError):
    action = "update"


class ReferenceResolutionError(_RemoteMutationError):
    """Creating a referenced asset or entry failed."""

    action = "create reference"


class FieldValueError(SyncError):
    """A front-matter value cannot be encoded for its remote field."""

    def __init__(self, content_type: str, field_id: str, value: Any, reason: str) -> None:
        self.content_type = content_type
        self.field_id = field_id
        self.value = value
        super().__init__(
            f"Content type '{content_type}', field '{field_id}': {reason} ({value!r})"
        )


class SourceError(SyncError):
    """A source document cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: {reason}")
