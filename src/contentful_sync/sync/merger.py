"""Field-map merge for updates of existing entries.

Updates use partial-update semantics: every field present in the new
map replaces the remote field of the same id (the whole locale envelope),
and remote fields the new map does not mention are kept as they are.
A field that an earlier, differently-shaped record populated therefore
survives an update that no longer sets it.

``merge`` is pure: neither input is modified, so the remote handle stays
unchanged until the explicit update call succeeds.
"""

from __future__ import annotations

from typing import Any


def merge(
    existing: dict[str, Any], new: dict[str, Any]
) -> dict[str, Any]:
    """Return *existing* overlaid with *new*, field by field.

    Args:
        existing: Field map currently stored remotely.
        new: Transformed field map from the local record.

    Returns:
        A new field map.
    """
    merged = dict(existing)
    merged.update(new)
    return merged


def changed_fields(
    existing: dict[str, Any], new: dict[str, Any]
) -> list[str]:
    """List field ids whose value in *new* differs from *existing*.

    Used for debug logging of updates.
    """
    return sorted(
        field_id
        for field_id, value in new.items()
        if existing.get(field_id) != value
    )
