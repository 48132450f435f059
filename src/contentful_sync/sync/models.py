"""Pydantic models for the content sync engine.

Defines the core data contracts used across all sync modules:

- ``FieldDescriptor`` / ``ContentTypeSchema``: remote content-type
  definitions.
- ``LocalRecord``: one parsed source document.
- ``RemoteEntry`` / ``RemoteAsset``: immutable handles on remote objects.
- ``SyncAction``: Enum of possible per-record operations.
- ``SyncResult``: Outcome of reconciling one record.
- ``SyncReport``: Aggregate results for a full run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .errors import SchemaError

LONG_TEXT_KIND = "Text"
DATE_KIND = "Date"


class SyncAction(str, Enum):
    """Possible operations for one record."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SKIP = "skip"


# ---------------------------------------------------------------------------
# Remote schema
# ---------------------------------------------------------------------------


class FieldDescriptor(BaseModel):
    """One field of a content type.

    Attributes:
        id: Field id used as the key in entry field maps.
        name: Human-readable field name.
        type: Value kind (``Symbol``, ``Text``, ``Date``, ``Link``,
            ``Array``, ...).
        link_type: ``Asset`` or ``Entry`` for link fields.
        validations: Raw validation rules as returned by the store.
    """

    id: str
    name: str = ""
    type: str
    link_type: str | None = None
    validations: list[dict[str, Any]] = []

    model_config = {"frozen": True}

    @property
    def is_unique(self) -> bool:
        return any(rule.get("unique") for rule in self.validations)


class ContentTypeSchema(BaseModel):
    """A remote content-type definition."""

    id: str
    display_field: str | None = None
    fields: list[FieldDescriptor] = []

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ContentTypeSchema:
        return cls(
            id=data["sys"]["id"],
            display_field=data.get("displayField"),
            fields=[
                FieldDescriptor(
                    id=f["id"],
                    name=f.get("name", ""),
                    type=f["type"],
                    link_type=f.get("linkType"),
                    validations=f.get("validations") or [],
                )
                for f in data.get("fields", [])
            ],
        )

    @property
    def field_ids(self) -> list[str]:
        return [f.id for f in self.fields]

    def has_field(self, field_id: str) -> bool:
        return field_id in self.field_ids

    def unique_field(self) -> str:
        """Return the id of the single field validated as unique.

        Raises:
            SchemaError: If zero or more than one field declares
                uniqueness.
        """
        unique = [f.id for f in self.fields if f.is_unique]
        if len(unique) != 1:
            raise SchemaError(
                self.id,
                f"expected exactly one unique field, found {len(unique)}"
                + (f" ({', '.join(unique)})" if unique else ""),
            )
        return unique[0]

    def body_field(self) -> str | None:
        """Return the first long-text field id, or ``None``."""
        for f in self.fields:
            if f.type == LONG_TEXT_KIND:
                return f.id
        return None

    def date_fields(self) -> list[str]:
        return [f.id for f in self.fields if f.type == DATE_KIND]


# ---------------------------------------------------------------------------
# Local side
# ---------------------------------------------------------------------------


class LocalRecord(BaseModel):
    """One source document discovered under the content root.

    Attributes:
        content_type: Content-type id derived from the plural directory.
        slug: Record directory name, the fallback slug.
        front_matter: Parsed front-matter key/value map.
        body: Document text after the front matter.
        source_dir: Directory holding the document and its media files.
    """

    content_type: str
    slug: str
    front_matter: dict[str, Any] = {}
    body: str = ""
    source_dir: Path

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Remote handles
# ---------------------------------------------------------------------------


class RemoteEntry(BaseModel):
    """Handle on a remote entry.

    Attributes:
        id: System id, fixed once created.
        content_type: Content-type id.
        version: Current version, required for update and publish.
        fields: Locale-tagged field map.
        published_version: Version at last publish, ``None`` if draft.
    """

    id: str
    content_type: str
    version: int
    fields: dict[str, Any] = {}
    published_version: int | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteEntry:
        sys = data["sys"]
        return cls(
            id=sys["id"],
            content_type=sys["contentType"]["sys"]["id"],
            version=sys.get("version", 1),
            fields=data.get("fields") or {},
            published_version=sys.get("publishedVersion"),
        )

    def field_value(self, field_id: str, locale: str) -> Any:
        """Return the raw value of *field_id* for *locale*, or ``None``."""
        return (self.fields.get(field_id) or {}).get(locale)


class RemoteAsset(BaseModel):
    """Handle on a remote asset."""

    id: str
    version: int
    published_version: int | None = None
    fields: dict[str, Any] = {}

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteAsset:
        sys_data = data["sys"]
        return cls(
            id=sys_data["id"],
            version=sys_data.get("version", 1),
            published_version=sys_data.get("publishedVersion"),
            fields=data.get("fields") or {},
        )

    @property
    def is_published(self) -> bool:
        return self.published_version is not None

    def title(self, locale: str) -> str | None:
        return (self.fields.get("title") or {}).get(locale)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class SyncResult(BaseModel):
    """Result of reconciling one record.

    Attributes:
        content_type: Content-type id.
        key: Identity key (value of the unique field).
        action: What was done remotely.
        published: Whether the entry was published in this run.
        entry_id: Remote system id, if any.
        source_path: Source document, empty for bulk deletes.
    """

    content_type: str
    key: str | None = None
    action: SyncAction
    published: bool = False
    entry_id: str | None = None
    source_path: str = ""

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full run.

    Attributes:
        mode: ``"sync"`` or ``"delete"``.
        results: Individual record results, in processing order.
        assets_created: Number of assets uploaded during the run.
        references_created: Number of linked entries created on demand.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    mode: str = "sync"
    results: list[SyncResult] = []
    assets_created: int = 0
    references_created: int = 0
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def created(self) -> list[SyncResult]:
        return [r for r in self.results if r.action == SyncAction.CREATE]

    @property
    def updated(self) -> list[SyncResult]:
        return [r for r in self.results if r.action == SyncAction.UPDATE]

    @property
    def deleted(self) -> list[SyncResult]:
        return [r for r in self.results if r.action == SyncAction.DELETE]

    @property
    def skipped(self) -> list[SyncResult]:
        return [r for r in self.results if r.action == SyncAction.SKIP]

    @property
    def published(self) -> list[SyncResult]:
        return [r for r in self.results if r.published]

    @property
    def drafts(self) -> list[SyncResult]:
        """Created or updated entries left unpublished."""
        return [
            r
            for r in self.results
            if r.action in (SyncAction.CREATE, SyncAction.UPDATE)
            and not r.published
        ]

    def summary(self) -> str:
        """Format a short human-readable summary of the run.

        Returns:
            Multi-line summary string with counts by action.
        """
        if self.mode == "delete":
            return "\n".join(
                [
                    "Bulk delete report",
                    f"  Deleted: {len(self.deleted)}",
                ]
            )
        lines = [
            "Sync report",
            f"  Created:    {len(self.created)}",
            f"  Updated:    {len(self.updated)}",
            f"  Published:  {len(self.published)}",
            f"  Drafts:     {len(self.drafts)}",
            f"  Skipped:    {len(self.skipped)}",
            f"  Assets:     {self.assets_created}",
            f"  References: {self.references_created}",
            f"  Total:      {len(self.results)}",
        ]
        return "\n".join(lines)
