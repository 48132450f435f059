"""Create-or-update decision and publish policy for one record."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..core.async_utils import run_sync
from ..core.client import REMOTE_FAILURES
from ..core.store import ContentStore
from .encoding import unwrap
from .errors import FieldValueError, RemoteCreateError, RemoteUpdateError
from .merger import changed_fields, merge
from .models import ContentTypeSchema, RemoteEntry, SyncAction, SyncResult
from .state import SyncContext, identity_key

logger = logging.getLogger(__name__)

PUBLISH_STATUS = "publish"


def should_publish(front_matter: dict[str, Any]) -> bool:
    """Publish unless the record carries a ``status`` other than ``publish``."""
    status = front_matter.get("status")
    if status is None:
        return True
    return str(status).strip() == PUBLISH_STATUS


class EntryReconciler:
    """Apply a transformed field map to the store.

    Args:
        store: Store used for create, update and publish.
        locale: Locale tag of the field maps.
    """

    def __init__(self, store: ContentStore, locale: str = "en-US") -> None:
        self.store = store
        self.locale = locale

    def identity_of(
        self,
        schema: ContentTypeSchema,
        fields: dict[str, Any],
        front_matter: dict[str, Any],
    ) -> str:
        """Return the identity key of a record.

        The raw front-matter value of the unique field wins; when the
        front matter does not set it, the transformed value is used
        (e.g. a slug derived from the record directory).

        Raises:
            SchemaError: If the type has no single unique field.
            FieldValueError: If the record has no value for it at all.
        """
        unique_field = schema.unique_field()
        key = identity_key(front_matter.get(unique_field))
        if key is None:
            key = identity_key(unwrap(fields.get(unique_field), self.locale))
        if key is None:
            raise FieldValueError(
                schema.id,
                unique_field,
                None,
                "record has no value for the unique field",
            )
        return key

    async def reconcile(
        self,
        content_type: str,
        fields: dict[str, Any],
        front_matter: dict[str, Any],
        schema: ContentTypeSchema,
        context: SyncContext,
        source_path: str = "",
    ) -> tuple[RemoteEntry, SyncResult]:
        """Create or update the entry for one record and apply the publish policy.

        Returns:
            The resulting entry handle and a ``SyncResult``.

        Raises:
            RemoteCreateError: If creating or publishing a new entry fails.
            RemoteUpdateError: If updating or publishing an existing entry
                fails.
        """
        key = self.identity_of(schema, fields, front_matter)
        publish = should_publish(front_matter)
        existing = context.identity_index.get(content_type, key)

        if existing is None:
            action = SyncAction.CREATE
            entry = await self._create(content_type, key, fields, publish)
        else:
            action = SyncAction.UPDATE
            entry = await self._update(existing, key, fields, publish)

        context.identity_index.put(content_type, key, entry)
        logger.info(
            "%s %s '%s' (%s)%s",
            "Created" if action == SyncAction.CREATE else "Updated",
            content_type,
            key,
            entry.id,
            "" if publish else " as draft",
        )
        return entry, SyncResult(
            content_type=content_type,
            key=key,
            action=action,
            published=publish,
            entry_id=entry.id,
            source_path=source_path,
        )

    async def _create(
        self,
        content_type: str,
        key: str,
        fields: dict[str, Any],
        publish: bool,
    ) -> RemoteEntry:
        try:
            entry = RemoteEntry.from_api(
                await run_sync(self.store.create_entry, content_type, fields)
            )
            if publish:
                entry = await self._publish(entry)
        except REMOTE_FAILURES as exc:
            self._report_failure("create", content_type, key, fields, exc)
            raise RemoteCreateError(content_type, key, fields, exc) from exc
        return entry

    async def _update(
        self,
        existing: RemoteEntry,
        key: str,
        fields: dict[str, Any],
        publish: bool,
    ) -> RemoteEntry:
        merged = merge(existing.fields, fields)
        logger.debug(
            "Updating %s '%s': changed fields %s",
            existing.content_type,
            key,
            changed_fields(existing.fields, fields),
        )
        try:
            entry = RemoteEntry.from_api(
                await run_sync(
                    self.store.update_entry,
                    existing.id,
                    existing.version,
                    merged,
                )
            )
            if publish:
                entry = await self._publish(entry)
        except REMOTE_FAILURES as exc:
            self._report_failure(
                "update", existing.content_type, key, merged, exc
            )
            raise RemoteUpdateError(
                existing.content_type, key, merged, exc
            ) from exc
        return entry

    async def _publish(self, entry: RemoteEntry) -> RemoteEntry:
        return RemoteEntry.from_api(
            await run_sync(self.store.publish_entry, entry.id, entry.version)
        )

    @staticmethod
    def _report_failure(
        action: str,
        content_type: str,
        key: str,
        fields: dict[str, Any],
        exc: Exception,
    ) -> None:
        logger.error(
            "Failed to %s %s '%s': %s\nfields: %s",
            action,
            content_type,
            key,
            exc,
            json.dumps(fields, indent=2, default=str),
        )
