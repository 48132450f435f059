"""Front-matter to remote field-map transformation.

``FieldTransformer.transform`` turns one ``LocalRecord`` into a field map
the store accepts.  Steps run in a fixed order because later steps
depend on earlier ones:

1. Seed the body field from the document text.
2. Copy pass-through front-matter keys.
3. Resolve the slug (explicit ``slug``, then ``post_name``, then the
   record directory name).
4. Drop ``status`` (it only drives the publish policy).
5. Normalise date fields to epoch milliseconds, assuming the default
   offset when a value carries no zone marker.
6. ``image`` / ``cover`` -> asset links.
7. ``attachments`` -> ordered asset links.
8. ``author`` -> entry link.
9. ``category`` -> ordered entry links.
10. ``links`` -> ordered ``externalLink`` entry links.

Every value in the result is wrapped under the single configured locale.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from .encoding import asset_link, entry_link, localize
from .errors import FieldValueError
from .models import ContentTypeSchema, LocalRecord
from .resolver import ReferenceResolver
from .schema import SLUG_FIELD, RemoteSchemaIndex
from .state import SyncContext

logger = logging.getLogger(__name__)

IMAGE_FIELDS = ("image", "cover")
SLUG_SOURCES = ("slug", "post_name")
STATUS_FIELD = "status"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Trailing "Z" or a numeric offset such as +07:00 / -0500
_ZONE_MARKER = re.compile(r"(?:[Zz]|[+-]\d{2}:?\d{2})$")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_OFFSET = re.compile(r"^([+-])(\d{2}):(\d{2})$")


# ---------------------------------------------------------------------------
# Date normalisation
# ---------------------------------------------------------------------------


def parse_offset(offset: str) -> timezone:
    """Turn ``+HH:MM`` / ``-HH:MM`` into a ``timezone``."""
    match = _OFFSET.match(offset)
    if match is None:
        raise ValueError(f"Invalid UTC offset: {offset!r}")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def normalize_date(value: Any, default_offset: str = "+07:00") -> int:
    """Convert a front-matter date into epoch milliseconds.

    Strings without a zone marker, naive ``datetime`` values and plain
    ``date`` values (midnight) are interpreted in *default_offset*.
    Values that already carry a zone are never shifted a second time.
    Integers are taken to be epoch milliseconds already.

    Raises:
        ValueError: If the value cannot be parsed as a date.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a date: {value!r}")
    if isinstance(value, int):
        return value

    if isinstance(value, datetime):
        moment = value
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=parse_offset(default_offset))
    elif isinstance(value, date):
        moment = datetime(
            value.year, value.month, value.day, tzinfo=parse_offset(default_offset)
        )
    elif isinstance(value, str):
        text = value.strip()
        zone = _ZONE_MARKER.search(text)
        if zone:
            stamp = text[: zone.start()].rstrip()
            offset = zone.group()
            if offset in ("Z", "z"):
                offset = "+00:00"
            offset = _COMPACT_OFFSET.sub(r"\1:\2", offset)
        else:
            stamp, offset = text, default_offset
        # The midnight time goes before the zone, never after it.
        if "T" not in stamp and " " not in stamp:
            stamp = f"{stamp}T00:00:00"
        moment = datetime.fromisoformat(stamp + offset)
    else:
        raise ValueError(f"Not a date: {value!r}")

    return (moment - EPOCH) // timedelta(milliseconds=1)


def _plain(value: Any) -> Any:
    """Make YAML-native values JSON-serialisable for pass-through fields."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------


class FieldTransformer:
    """Build remote field maps for local records.

    Args:
        resolver: Resolver for media and entry references.
        schema_index: Loaded schema index (field-mapping table).
        locale: Locale tag for every output value.
        default_tz_offset: Offset assumed for dates without a zone.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        schema_index: RemoteSchemaIndex,
        locale: str = "en-US",
        default_tz_offset: str = "+07:00",
    ) -> None:
        self.resolver = resolver
        self.schema_index = schema_index
        self.locale = locale
        self.default_tz_offset = default_tz_offset

    async def transform(
        self,
        record: LocalRecord,
        schema: ContentTypeSchema,
        context: SyncContext,
    ) -> dict[str, Any]:
        """Return the locale-wrapped field map for *record*."""
        fm = record.front_matter
        fields: dict[str, Any] = {}

        # 1. Body
        body_field = schema.body_field()
        if body_field is not None:
            fields[body_field] = localize(record.body, self.locale)

        # 2. Pass-through
        mapping = self.schema_index.field_mapping(schema.id)
        for key, value in fm.items():
            kind = mapping.classify(key)
            if kind == "passthrough":
                fields[key] = localize(_plain(value), self.locale)
            elif kind is None:
                logger.debug(
                    "Dropping front-matter key '%s' of %s/%s: not a %s field",
                    key,
                    record.content_type,
                    record.slug,
                    schema.id,
                )

        # 3. Slug
        if schema.has_field(SLUG_FIELD):
            slug = next(
                (fm[name] for name in SLUG_SOURCES if fm.get(name)), record.slug
            )
            fields[SLUG_FIELD] = localize(str(slug), self.locale)

        # 4. Status never reaches the store
        fields.pop(STATUS_FIELD, None)

        # 5. Dates
        for field_id in schema.date_fields():
            value = fm.get(field_id)
            if value is None or value == "":
                continue
            try:
                timestamp = normalize_date(value, self.default_tz_offset)
            except ValueError as exc:
                raise FieldValueError(
                    schema.id, field_id, value, str(exc)
                ) from exc
            fields[field_id] = localize(timestamp, self.locale)

        # 6. Single media
        for field_id in IMAGE_FIELDS:
            filename = fm.get(field_id)
            if filename and self._accepts(schema, field_id, record):
                asset_id = await self.resolver.resolve_asset(
                    record.source_dir / str(filename), context
                )
                fields[field_id] = localize(asset_link(asset_id), self.locale)

        # 7. Attachments
        attachments = _as_list(fm.get("attachments"))
        if attachments and self._accepts(schema, "attachments", record):
            links = []
            for filename in attachments:
                asset_id = await self.resolver.resolve_asset(
                    record.source_dir / str(filename), context
                )
                links.append(asset_link(asset_id))
            fields["attachments"] = localize(links, self.locale)

        # 8. Author
        author = fm.get("author")
        if author and self._accepts(schema, "author", record):
            author_id = await self.resolver.resolve_related(
                "author", {"name": author, "slug": author}, context
            )
            fields["author"] = localize(entry_link(author_id), self.locale)

        # 9. Categories
        categories = _as_list(fm.get("category"))
        if categories and self._accepts(schema, "category", record):
            links = []
            for category in categories:
                category_id = await self.resolver.resolve_related(
                    "category", {"title": category, "slug": category}, context
                )
                links.append(entry_link(category_id))
            fields["category"] = localize(links, self.locale)

        # 10. External links
        external = _as_list(fm.get("links"))
        if external and self._accepts(schema, "links", record):
            links = []
            for item in external:
                if not isinstance(item, dict):
                    raise FieldValueError(
                        schema.id, "links", item, "each link must be a mapping"
                    )
                links.append(
                    entry_link(await self.resolver.resolve_link(item, context))
                )
            fields["links"] = localize(links, self.locale)

        return fields

    def _accepts(
        self, schema: ContentTypeSchema, field_id: str, record: LocalRecord
    ) -> bool:
        if schema.has_field(field_id):
            return True
        logger.warning(
            "%s/%s sets '%s' but content type %s has no such field; skipping",
            record.content_type,
            record.slug,
            field_id,
            schema.id,
        )
        return False
