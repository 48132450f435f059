"""Capability surface of the remote content store.

The sync engine never talks HTTP directly.  Everything it needs from the
store is described by ``ContentStore``; ``ContentfulClient`` is the
production implementation and the test-suite uses an in-memory fake.

All methods are blocking and return raw JSON-like dicts in the store's
own wire shape (``{"sys": {...}, "fields": {...}}``).  Callers in the
async sync layer wrap them with ``run_sync``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol


class ContentStore(Protocol):
    """Protocol that every store backend must satisfy."""

    def get_content_types(self) -> list[dict[str, Any]]:
        """Return every content-type definition in the environment."""
        ...  # pragma: no cover

    def get_entries(
        self, skip: int, limit: int, order: str = "sys.createdAt"
    ) -> dict[str, Any]:
        """Return one page: ``{"items": [...], "total": N, ...}``."""
        ...  # pragma: no cover

    def get_assets(
        self, skip: int, limit: int, order: str = "sys.createdAt"
    ) -> dict[str, Any]:
        """Return one page of assets, same shape as ``get_entries``."""
        ...  # pragma: no cover

    def create_entry(
        self, content_type: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        ...  # pragma: no cover

    def update_entry(
        self, entry_id: str, version: int, fields: dict[str, Any]
    ) -> dict[str, Any]:
        ...  # pragma: no cover

    def publish_entry(self, entry_id: str, version: int) -> dict[str, Any]:
        ...  # pragma: no cover

    def unpublish_entry(self, entry_id: str) -> dict[str, Any]:
        ...  # pragma: no cover

    def delete_entry(self, entry_id: str) -> None:
        ...  # pragma: no cover

    def create_asset_from_file(
        self, path: Path, title: str, mime_type: str, locale: str
    ) -> dict[str, Any]:
        """Upload *path* and create an (unprocessed) asset pointing at it."""
        ...  # pragma: no cover

    def process_asset(
        self, asset_id: str, version: int, locale: str
    ) -> dict[str, Any]:
        """Process the asset file for *locale* and return the fresh asset."""
        ...  # pragma: no cover

    def publish_asset(self, asset_id: str, version: int) -> dict[str, Any]:
        ...  # pragma: no cover
