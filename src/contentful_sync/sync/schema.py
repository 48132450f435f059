"""Remote content-type schema index.

Loads every content-type definition once per run and answers the two
questions reconciliation depends on: which field carries the identity
of an entry (the single field with a ``unique`` validation) and which
field receives the document body (the first long-text field).

It also owns the field-mapping table.  For each content type every
front-matter key falls into exactly one class:

* **special** -- handled by a dedicated transformation step (media,
  references, slug, dates);
* **ignored** -- consumed elsewhere or redundant (``status``, raw post
  identifiers);
* **pass-through** -- copied verbatim, locale-wrapped.

Pass-through defaults to every remote field that is neither special nor
ignored; configuration may narrow it, and every configured name is
checked against the remote schema when the index loads.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ..core.async_utils import run_sync
from ..core.store import ContentStore
from .errors import SchemaError
from .models import ContentTypeSchema

logger = logging.getLogger(__name__)

SLUG_FIELD = "slug"
SPECIAL_FIELDS = frozenset(
    {"image", "cover", "attachments", "author", "category", "links", SLUG_FIELD}
)
DEFAULT_IGNORED_FIELDS = frozenset({"status", "post_name", "post_id", "postId"})


class FieldMapping(BaseModel):
    """Classification of front-matter keys for one content type."""

    content_type: str
    passthrough: frozenset[str]
    special: frozenset[str]
    ignored: frozenset[str]

    model_config = {"frozen": True}

    def classify(self, key: str) -> str | None:
        """Return ``"special"``, ``"ignored"``, ``"passthrough"`` or ``None``.

        Special and ignored win over pass-through; ``None`` means the key
        has no counterpart in the remote schema.
        """
        if key in self.special:
            return "special"
        if key in self.ignored:
            return "ignored"
        if key in self.passthrough:
            return "passthrough"
        return None


class RemoteSchemaIndex:
    """Load and query content-type schemas for one run.

    Args:
        store: Store to read content types from.
        field_mappings: Optional per-content-type overrides, each a dict
            with optional ``passthrough`` and ``ignored`` name lists.
    """

    def __init__(
        self,
        store: ContentStore,
        field_mappings: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.store = store
        self._overrides = dict(field_mappings or {})
        self._schemas: dict[str, ContentTypeSchema] | None = None
        self._mappings: dict[str, FieldMapping] = {}

    async def load(self) -> dict[str, ContentTypeSchema]:
        """Fetch all content types; later calls return the cached result.

        Raises:
            SchemaError: If a configured field mapping names an unknown
                content type or a field the remote schema lacks.
        """
        if self._schemas is not None:
            return self._schemas

        raw = await run_sync(self.store.get_content_types)
        schemas = {}
        for item in raw:
            schema = ContentTypeSchema.from_api(item)
            schemas[schema.id] = schema
        logger.info("Loaded %d content types", len(schemas))

        self._schemas = schemas
        for content_type in self._overrides:
            if content_type not in schemas:
                raise SchemaError(
                    content_type, "field mapping configured for unknown content type"
                )
        self._mappings = {
            content_type: self._build_mapping(schema)
            for content_type, schema in schemas.items()
        }
        return schemas

    @property
    def schemas(self) -> dict[str, ContentTypeSchema]:
        if self._schemas is None:
            raise RuntimeError("Schema index not loaded. Call load() first.")
        return self._schemas

    def get(self, content_type: str) -> ContentTypeSchema:
        """Return the schema for *content_type*.

        Raises:
            SchemaError: If the content type does not exist remotely.
        """
        try:
            return self.schemas[content_type]
        except KeyError:
            raise SchemaError(
                content_type, "no such content type in the remote store"
            ) from None

    def unique_field(self, content_type: str) -> str:
        return self.get(content_type).unique_field()

    def body_field(self, content_type: str) -> str | None:
        return self.get(content_type).body_field()

    def field_mapping(self, content_type: str) -> FieldMapping:
        self.get(content_type)
        return self._mappings[content_type]

    def require(self, content_type: str) -> ContentTypeSchema:
        """Check that *content_type* can be reconciled at all.

        Called before any record of the type is touched so a broken
        schema aborts the run ahead of the first mutation.
        """
        schema = self.get(content_type)
        schema.unique_field()
        return schema

    def _build_mapping(self, schema: ContentTypeSchema) -> FieldMapping:
        override = self._overrides.get(schema.id) or {}
        special = SPECIAL_FIELDS | set(schema.date_fields())
        ignored = DEFAULT_IGNORED_FIELDS | set(override.get("ignored") or [])

        configured = override.get("passthrough")
        if configured is None:
            passthrough = set(schema.field_ids) - special - ignored
        else:
            missing = [name for name in configured if not schema.has_field(name)]
            if missing:
                raise SchemaError(
                    schema.id,
                    f"pass-through fields not in remote schema: {', '.join(sorted(missing))}",
                )
            passthrough = set(configured) - special - ignored

        return FieldMapping(
            content_type=schema.id,
            passthrough=frozenset(passthrough),
            special=frozenset(special),
            ignored=frozenset(ignored),
        )
