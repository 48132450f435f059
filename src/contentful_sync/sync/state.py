"""Remote state snapshot for one sync run.

``RemoteStateLoader`` pages through the full entry (and asset) listing
before any mutation happens and turns it into a ``SyncContext``:

* ``IdentityIndex`` -- ``(content_type, unique_value) -> RemoteEntry``,
  the only source of truth for "does this record exist remotely";
* ``ReferenceCache`` -- assets by file path, external links by URL and
  related records by ``(content_type, unique_value)``.

The context is built once per run and passed explicitly to every
component.  Nothing here is global and nothing is ever invalidated
within a run; execution is strictly sequential so no locking is needed.

Pagination uses a fixed page size and a stable ``sys.createdAt`` order,
and stops when the cumulative count reaches the reported total.  This is
best effort, not a transactional snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from ..core.async_utils import run_sync
from ..core.store import ContentStore
from .errors import SchemaError
from .models import RemoteAsset, RemoteEntry
from .schema import RemoteSchemaIndex

logger = logging.getLogger(__name__)

CREATION_ORDER = "sys.createdAt"


def identity_key(value: Any) -> str | None:
    """Normalise a unique-field value into an index key.

    Scalars are compared by their string form so a YAML integer matches
    the same value stored remotely as text.  Empty and non-scalar values
    cannot identify a record and yield ``None``.
    """
    if value is None or isinstance(value, (list, dict)):
        return None
    key = str(value).strip()
    return key or None


class IdentityIndex:
    """Map ``(content_type, key)`` to the latest known ``RemoteEntry``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], RemoteEntry] = {}

    def get(self, content_type: str, key: str) -> RemoteEntry | None:
        return self._entries.get((content_type, key))

    def put(self, content_type: str, key: str, entry: RemoteEntry) -> None:
        self._entries[(content_type, key)] = entry

    def __contains__(self, item: tuple[str, str]) -> bool:
        return item in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries)


@dataclass
class ReferenceCache:
    """Remote ids of reference targets resolved during the run."""

    assets: dict[str, str] = field(default_factory=dict)
    links: dict[str, str] = field(default_factory=dict)
    related: dict[tuple[str, str], str] = field(default_factory=dict)


@dataclass
class SyncContext:
    """Per-run mutable state threaded through every component."""

    identity_index: IdentityIndex = field(default_factory=IdentityIndex)
    references: ReferenceCache = field(default_factory=ReferenceCache)
    entries: list[RemoteEntry] = field(default_factory=list)


class RemoteStateLoader:
    """Load the complete remote state before reconciliation starts.

    Args:
        store: Store to list entries and assets from.
        schema_index: Loaded schema index, used to find unique fields.
        page_size: Items requested per page.
        locale: Locale tag whose field values are indexed.
    """

    def __init__(
        self,
        store: ContentStore,
        schema_index: RemoteSchemaIndex,
        page_size: int = 100,
        locale: str = "en-US",
    ) -> None:
        self.store = store
        self.schema_index = schema_index
        self.page_size = page_size
        self.locale = locale

    async def load_all(self) -> list[RemoteEntry]:
        """Return every remote entry, following pagination to the end."""
        items = await self._paginate(self.store.get_entries, "entries")
        return [RemoteEntry.from_api(item) for item in items]

    async def load_assets(self) -> list[RemoteAsset]:
        """Return every remote asset, following pagination to the end."""
        items = await self._paginate(self.store.get_assets, "assets")
        return [RemoteAsset.from_api(item) for item in items]

    def build_index(self, entries: list[RemoteEntry]) -> IdentityIndex:
        """Index *entries* by their content type's unique field value.

        Entries whose type is unknown, whose type has no usable unique
        field, or which lack a value for it are skipped: they cannot be
        matched to a local source.
        """
        index = IdentityIndex()
        skipped = 0
        for entry in entries:
            try:
                unique_field = self.schema_index.unique_field(entry.content_type)
            except SchemaError as exc:
                logger.debug("Not indexing entry %s: %s", entry.id, exc)
                skipped += 1
                continue

            key = identity_key(entry.field_value(unique_field, self.locale))
            if key is None:
                skipped += 1
                continue

            if (entry.content_type, key) in index:
                logger.warning(
                    "Duplicate %s '%s' (entries %s and %s); keeping the first",
                    entry.content_type,
                    key,
                    index.get(entry.content_type, key).id,
                    entry.id,
                )
                continue
            index.put(entry.content_type, key, entry)

        logger.info(
            "Indexed %d of %d remote entries (%d without identity)",
            len(index),
            len(entries),
            skipped,
        )
        return index

    async def build_context(self) -> SyncContext:
        """Load entries and assets and assemble a fresh ``SyncContext``.

        The asset cache is seeded from existing asset titles, which are
        the source file paths they were uploaded from.  Only published
        assets are reused: an asset left unprocessed or unpublished by an
        interrupted run is a miss, so its path is uploaded again.
        """
        entries = await self.load_all()
        context = SyncContext(
            identity_index=self.build_index(entries), entries=entries
        )
        for asset in await self.load_assets():
            title = asset.title(self.locale)
            if not title or title in context.references.assets:
                continue
            if not asset.is_published:
                logger.warning(
                    "Ignoring unpublished asset %s for %s; it will be re-uploaded",
                    asset.id,
                    title,
                )
                continue
            context.references.assets[title] = asset.id
        return context

    async def _paginate(
        self, fetch_page: Callable[..., dict[str, Any]], label: str
    ) -> list[dict[str, Any]]:
        collected: list[dict[str, Any]] = []
        total: int | None = None
        while total is None or len(collected) < total:
            page = await run_sync(
                fetch_page,
                skip=len(collected),
                limit=self.page_size,
                order=CREATION_ORDER,
            )
            items = page.get("items", [])
            total = int(page.get("total", 0))
            if not items:
                # The store shrank under us; stop rather than spin.
                break
            collected.extend(items)
            logger.debug(
                "Fetched %d/%d %s", len(collected), total, label
            )

        logger.info("Loaded %d remote %s", len(collected), label)
        return collected
