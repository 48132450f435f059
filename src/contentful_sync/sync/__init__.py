"""Markdown-to-Contentful reconciliation engine.

Public API for synchronising a local tree of markdown documents with the
entries and assets of a Contentful space environment.

Architecture
------------
Each run loads the complete remote state up front, matches local
records to remote entries through the unique field declared by each
content type, and creates or updates entries so that repeated runs
converge instead of duplicating data.

Modules:

- ``engine``      -- ``SyncEngine``: orchestrates a run or a bulk delete.
- ``schema``      -- ``RemoteSchemaIndex``: content types, unique and body
  fields, field-mapping table.
- ``state``       -- ``RemoteStateLoader``, ``IdentityIndex``,
  ``ReferenceCache``, ``SyncContext``.
- ``resolver``    -- ``ReferenceResolver``: get-or-create of assets and
  linked entries.
- ``mapper``      -- ``FieldTransformer``: front matter to field map.
- ``reconciler``  -- ``EntryReconciler``: create/update and publish policy.
- ``merger``      -- pure field-map merge for updates.
- ``source``      -- source tree walk and front-matter parsing.
- ``models``      -- Pydantic data contracts.
- ``errors``      -- exception hierarchy rooted at ``SyncError``.
- ``reporter``    -- human-readable and JSON report formatting.

Usage example
-------------
::

    import asyncio
    from pathlib import Path
    from contentful_sync.core.client import ContentfulClient
    from contentful_sync.sync import SyncEngine, format_sync_report

    engine = SyncEngine(client, content_root=Path("content"))
    report = asyncio.run(engine.run())
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .errors import (
    FieldValueError,
    ReferenceResolutionError,
    RemoteCreateError,
    RemoteUpdateError,
    SchemaError,
    SourceError,
    SyncError,
)
from .merger import merge
from .models import (
    ContentTypeSchema,
    LocalRecord,
    RemoteEntry,
    SyncAction,
    SyncReport,
    SyncResult,
)
from .reporter import format_sync_report, report_to_json
from .state import IdentityIndex, ReferenceCache, SyncContext

__all__ = [
    "ContentTypeSchema",
    "FieldValueError",
    "IdentityIndex",
    "LocalRecord",
    "ReferenceCache",
    "ReferenceResolutionError",
    "RemoteCreateError",
    "RemoteEntry",
    "RemoteUpdateError",
    "SchemaError",
    "SourceError",
    "SyncAction",
    "SyncContext",
    "SyncEngine",
    "SyncError",
    "SyncReport",
    "SyncResult",
    "format_sync_report",
    "merge",
    "report_to_json",
]
