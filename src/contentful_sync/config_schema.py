"""Unified configuration schema for contentful_sync.

Defines Pydantic models for the YAML config file with dedicated sections
for the Contentful connection, sync behaviour and logging.

Usage:
    from contentful_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ContentfulConfig(BaseModel):
    """Contentful connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    space_id: str | None = Field(default=None, description="Space id")
    environment_id: str | None = Field(
        default=None, description="Environment id (default: master)"
    )
    access_token: str | None = Field(
        default=None, description="Content Management API token"
    )
    locale: str | None = Field(
        default=None, description="Locale tag for every field value"
    )
    page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Entries requested per listing page (1-1000)",
    )

    model_config = {"frozen": True}


class FieldMappingConfig(BaseModel):
    """Field-mapping override for one content type.

    Attributes:
        passthrough: Front-matter keys copied verbatim.  ``None`` means
            every remote field that is not special-cased or ignored.
        ignored: Extra keys never sent to the store.
    """

    passthrough: list[str] | None = None
    ignored: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Source tree and transformation settings."""

    content_root: str | None = Field(
        default=None, description="Local content directory"
    )
    content_types: list[str] = Field(
        default_factory=list,
        description="Directories or content-type ids to sync (default: all)",
    )
    default_tz_offset: str = Field(
        default="+07:00",
        pattern=r"^[+-]\d{2}:\d{2}$",
        description="Offset assumed for dates without a zone marker",
    )
    delete_all: bool = Field(
        default=False,
        description="Unpublish and delete every entry instead of syncing",
    )
    field_mappings: dict[str, FieldMappingConfig] = Field(
        default_factory=dict
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    contentful: ContentfulConfig = Field(default_factory=ContentfulConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def contentful_fallbacks(self) -> dict:
        """Non-``None`` connection values, for ``load_config``."""
        return {
            k: v
            for k, v in self.contentful.model_dump().items()
            if v is not None
        }

    def sync_fallbacks(self) -> dict:
        """Sync section as plain data, for ``load_config``."""
        return {
            k: v
            for k, v in self.sync.model_dump().items()
            if v is not None
        }


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully — anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
