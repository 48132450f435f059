"""Sync engine that orchestrates a full run.

The ``SyncEngine`` ties together schema index, state loader, field
transformer, reference resolver and reconciler.  A sync run:

1. Loads all content-type schemas.
2. Loads the complete remote state (entries and assets) and builds the
   run's ``SyncContext``.  Nothing is mutated before this finishes.
3. Walks content-type directories in sorted order; each type is checked
   against its schema before its first record is touched.
4. For every record, in sorted order: transform fields (resolving
   references on the way), then create or update and publish.
5. Builds and returns a ``SyncReport``.

Execution is strictly sequential and the first fatal error aborts the
run; changes already applied are not rolled back.

``delete_all`` is the alternative bulk mode: unpublish and delete every
remote entry, regardless of content type.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..core.async_utils import run_sync
from ..core.client import StoreError
from ..core.store import ContentStore
from .mapper import FieldTransformer
from .models import (
    ContentTypeSchema,
    LocalRecord,
    SyncAction,
    SyncReport,
    SyncResult,
)
from .reconciler import EntryReconciler
from .resolver import ReferenceResolver
from .schema import RemoteSchemaIndex
from .source import DOCUMENT_NAME, iter_content_dirs, iter_records
from .state import RemoteStateLoader, SyncContext

logger = logging.getLogger(__name__)


class SyncEngine:
    """Orchestrate a sync (or bulk delete) against one store environment.

    Args:
        store: Store implementing the ``ContentStore`` protocol.
        content_root: Root of the local source tree.
        locale: Locale tag for every field value.
        page_size: Page size used when listing remote state.
        default_tz_offset: Offset assumed for dates without a zone.
        content_types: Optional filter of directories / type ids to sync.
        field_mappings: Optional per-type field-mapping overrides.
    """

    def __init__(
        self,
        store: ContentStore,
        content_root: Path,
        locale: str = "en-US",
        page_size: int = 100,
        default_tz_offset: str = "+07:00",
        content_types: list[str] | None = None,
        field_mappings: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.store = store
        self.content_root = content_root
        self.content_types = content_types or []

        self.schema_index = RemoteSchemaIndex(store, field_mappings)
        self.loader = RemoteStateLoader(
            store, self.schema_index, page_size=page_size, locale=locale
        )
        self.resolver = ReferenceResolver(store, self.schema_index, locale)
        self.transformer = FieldTransformer(
            self.resolver,
            self.schema_index,
            locale=locale,
            default_tz_offset=default_tz_offset,
        )
        self.reconciler = EntryReconciler(store, locale)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def run(self) -> SyncReport:
        """Synchronise the whole source tree.

        Returns:
            A ``SyncReport`` of everything that was created or updated.

        Raises:
            SyncError: On the first fatal error (schema, source or remote).
            StoreError: If loading remote state fails.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        await self.schema_index.load()
        context = await self.loader.build_context()

        results: list[SyncResult] = []
        for content_type, type_dir in iter_content_dirs(
            self.content_root, self.content_types
        ):
            schema = self.schema_index.require(content_type)
            logger.info("Syncing %s from %s", content_type, type_dir)
            for record in iter_records(type_dir, content_type):
                results.append(
                    await self.sync_record(record, schema, context)
                )

        report = SyncReport(
            mode="sync",
            results=results,
            assets_created=self.resolver.assets_created,
            references_created=self.resolver.references_created,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "Sync finished: %d created, %d updated, %d drafts",
            len(report.created),
            len(report.updated),
            len(report.drafts),
        )
        return report

    async def sync_record(
        self,
        record: LocalRecord,
        schema: ContentTypeSchema,
        context: SyncContext,
    ) -> SyncResult:
        """Transform and reconcile a single record."""
        logger.debug("Processing %s/%s", record.content_type, record.slug)
        fields = await self.transformer.transform(record, schema, context)
        _, result = await self.reconciler.reconcile(
            record.content_type,
            fields,
            record.front_matter,
            schema,
            context,
            source_path=str(record.source_dir / DOCUMENT_NAME),
        )
        return result

    # ------------------------------------------------------------------
    # Bulk delete
    # ------------------------------------------------------------------

    async def delete_all(self) -> SyncReport:
        """Unpublish and delete every remote entry.

        Unpublish failures are ignored (the entry may already be a
        draft); delete failures abort the run.

        Raises:
            StoreError: If a delete call fails.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        entries = await self.loader.load_all()
        logger.warning("Deleting %d remote entries", len(entries))

        results: list[SyncResult] = []
        for entry in entries:
            try:
                await run_sync(self.store.unpublish_entry, entry.id)
            except StoreError as exc:
                logger.debug("Unpublish of %s ignored: %s", entry.id, exc)

            await run_sync(self.store.delete_entry, entry.id)
            logger.info("Deleted %s %s", entry.content_type, entry.id)
            results.append(
                SyncResult(
                    content_type=entry.content_type,
                    action=SyncAction.DELETE,
                    entry_id=entry.id,
                )
            )

        return SyncReport(
            mode="delete",
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
