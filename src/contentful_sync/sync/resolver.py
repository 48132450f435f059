"""Get-or-create resolution of referenced remote objects.

Records point at three kinds of targets:

- ``resolve_asset``: a media file next to the source document;
- ``resolve_link``: an ``externalLink`` entry described by a field-set
  with at least a ``url``;
- ``resolve_related``: an entry of another content type (``author``,
  ``category``) described by a small field-set.

Each lookup goes cache -> remote snapshot -> create.  A created target
is published immediately (reference targets have no draft state) and
cached, so a key is created at most once per run.  Any failure aborts
the run: a later link to a target that was never created would be
dangling.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

from ..core.async_utils import run_sync
from ..core.client import REMOTE_FAILURES
from ..core.store import ContentStore
from .encoding import localize_fields
from .errors import ReferenceResolutionError, SchemaError
from .models import RemoteAsset, RemoteEntry
from .schema import RemoteSchemaIndex
from .state import SyncContext, identity_key

logger = logging.getLogger(__name__)

LINK_CONTENT_TYPE = "externalLink"
DEFAULT_MIME_TYPE = "application/octet-stream"


class ReferenceResolver:
    """Resolve references to remote ids, creating targets on demand.

    Args:
        store: Store used to create and publish targets.
        schema_index: Loaded schema index (unique fields of target types).
        locale: Locale tag for every created field.
    """

    def __init__(
        self,
        store: ContentStore,
        schema_index: RemoteSchemaIndex,
        locale: str = "en-US",
    ) -> None:
        self.store = store
        self.schema_index = schema_index
        self.locale = locale
        self.assets_created = 0
        self.references_created = 0

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    async def resolve_asset(self, path: Path, context: SyncContext) -> str:
        """Return the id of the published asset uploaded from *path*."""
        key = path.as_posix()
        cached = context.references.assets.get(key)
        if cached is not None:
            return cached

        mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
        try:
            created = RemoteAsset.from_api(
                await run_sync(
                    self.store.create_asset_from_file,
                    path,
                    key,
                    mime_type,
                    self.locale,
                )
            )
            processed = RemoteAsset.from_api(
                await run_sync(
                    self.store.process_asset,
                    created.id,
                    created.version,
                    self.locale,
                )
            )
            await run_sync(
                self.store.publish_asset, processed.id, processed.version
            )
        except REMOTE_FAILURES as exc:
            logger.error("Asset upload failed for %s (%s): %s", key, mime_type, exc)
            raise ReferenceResolutionError(
                "Asset", key, {"title": key, "contentType": mime_type}, exc
            ) from exc

        context.references.assets[key] = processed.id
        self.assets_created += 1
        logger.info("Created asset %s for %s", processed.id, key)
        return processed.id

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    async def resolve_link(
        self, link_fields: dict[str, Any], context: SyncContext
    ) -> str:
        """Return the id of the ``externalLink`` entry for *link_fields*."""
        url = link_fields.get("url")
        if not url:
            raise SchemaError(
                LINK_CONTENT_TYPE, f"link without a url: {link_fields!r}"
            )

        cached = context.references.links.get(url)
        if cached is not None:
            return cached

        existing = self._lookup_existing(LINK_CONTENT_TYPE, link_fields, context)
        if existing is not None:
            entry_id = existing.id
        else:
            entry_id = await self._create_published(
                LINK_CONTENT_TYPE, url, link_fields, context
            )

        context.references.links[url] = entry_id
        return entry_id

    async def resolve_related(
        self,
        content_type: str,
        field_set: dict[str, Any],
        context: SyncContext,
    ) -> str:
        """Return the id of the *content_type* entry matching *field_set*.

        Raises:
            SchemaError: If the type has no unique field or *field_set*
                does not provide a value for it.
        """
        unique_field = self.schema_index.unique_field(content_type)
        key = identity_key(field_set.get(unique_field))
        if key is None:
            raise SchemaError(
                content_type,
                f"reference is missing a value for unique field '{unique_field}'",
            )

        cached = context.references.related.get((content_type, key))
        if cached is not None:
            return cached

        existing = context.identity_index.get(content_type, key)
        if existing is not None:
            entry_id = existing.id
        else:
            entry_id = await self._create_published(
                content_type, key, field_set, context
            )

        context.references.related[(content_type, key)] = entry_id
        return entry_id

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lookup_existing(
        self,
        content_type: str,
        field_set: dict[str, Any],
        context: SyncContext,
    ) -> RemoteEntry | None:
        try:
            unique_field = self.schema_index.unique_field(content_type)
        except SchemaError:
            return None
        key = identity_key(field_set.get(unique_field))
        if key is None:
            return None
        return context.identity_index.get(content_type, key)

    async def _create_published(
        self,
        content_type: str,
        key: str,
        field_set: dict[str, Any],
        context: SyncContext,
    ) -> str:
        fields = localize_fields(field_set, self.locale)
        try:
            created = RemoteEntry.from_api(
                await run_sync(self.store.create_entry, content_type, fields)
            )
            published = RemoteEntry.from_api(
                await run_sync(
                    self.store.publish_entry, created.id, created.version
                )
            )
        except REMOTE_FAILURES as exc:
            logger.error(
                "Creating %s '%s' failed: %s; fields=%r",
                content_type,
                key,
                exc,
                fields,
            )
            raise ReferenceResolutionError(
                content_type, key, fields, exc
            ) from exc

        self._remember(content_type, field_set, published, context)
        self.references_created += 1
        logger.info("Created %s %s for '%s'", content_type, published.id, key)
        return published.id

    def _remember(
        self,
        content_type: str,
        field_set: dict[str, Any],
        entry: RemoteEntry,
        context: SyncContext,
    ) -> None:
        """Record a freshly created target in the identity index too."""
        try:
            unique_field = self.schema_index.unique_field(content_type)
        except SchemaError:
            return
        key = identity_key(field_set.get(unique_field))
        if key is not None:
            context.identity_index.put(content_type, key, entry)
