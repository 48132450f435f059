"""Remote field encoding helpers: locale envelopes and link values."""

from __future__ import annotations

from typing import Any


def localize(value: Any, locale: str) -> dict[str, Any]:
    """Wrap a raw value in the single-locale envelope."""
    return {locale: value}


def localize_fields(fields: dict[str, Any], locale: str) -> dict[str, Any]:
    """Wrap every value of a plain field-set."""
    return {key: localize(value, locale) for key, value in fields.items()}


def unwrap(value: Any, locale: str) -> Any:
    """Inverse of ``localize``; non-envelopes are returned unchanged."""
    if isinstance(value, dict) and locale in value:
        return value[locale]
    return value


def link(link_type: str, target_id: str) -> dict[str, Any]:
    """Build a typed link value (``Asset`` or ``Entry``)."""
    return {"sys": {"type": "Link", "linkType": link_type, "id": target_id}}


def asset_link(asset_id: str) -> dict[str, Any]:
    return link("Asset", asset_id)


def entry_link(entry_id: str) -> dict[str, Any]:
    return link("Entry", entry_id)
