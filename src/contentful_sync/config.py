"""Runtime configuration for the content sync CLI.

Reads Contentful connection settings and sync options from CLI args,
environment variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    CONTENTFUL_SPACE_ID: Space identifier (required)
    CONTENTFUL_ENVIRONMENT: Environment identifier (optional, default: master)
    CONTENTFUL_MANAGEMENT_TOKEN: Content Management API token (required)
    CONTENT_ROOT: Local content directory (optional, default: content)
    CONTENTFUL_DELETE_ALL: Unpublish and delete every entry instead of syncing
    CONTENTFUL_LOCALE: Locale tag used for every field (optional, default: en-US)
    CONTENTFUL_PAGE_SIZE: Entries per listing request (optional, default: 100)
"""

import logging
import os
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "master"
DEFAULT_CONTENT_ROOT = "content"
DEFAULT_LOCALE = "en-US"
DEFAULT_PAGE_SIZE = 100
DEFAULT_TZ_OFFSET = "+07:00"

_TZ_OFFSET_PATTERN = re.compile(r"^[+-]\d{2}:\d{2}$")


@dataclass
class Config:
    space_id: str
    access_token: str
    environment_id: str = DEFAULT_ENVIRONMENT
    content_root: str = DEFAULT_CONTENT_ROOT
    delete_all: bool = False
    debug: bool = False
    locale: str = DEFAULT_LOCALE
    page_size: int = DEFAULT_PAGE_SIZE
    default_tz_offset: str = DEFAULT_TZ_OFFSET
    content_types: list[str] = field(default_factory=list)
    field_mappings: dict[str, dict] = field(default_factory=dict)


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If identifiers are empty or numeric/offset values are
            out of range.
    """
    config.space_id = config.space_id.strip()
    if not config.space_id:
        raise ValueError(
            "Contentful space id cannot be empty. Set CONTENTFUL_SPACE_ID environment variable."
        )

    if not config.access_token.strip():
        raise ValueError(
            "Contentful access token cannot be empty. "
            "Set CONTENTFUL_MANAGEMENT_TOKEN environment variable."
        )

    config.environment_id = config.environment_id.strip()
    if not config.environment_id:
        raise ValueError("Contentful environment id cannot be empty")

    if not (1 <= config.page_size <= 1000):
        raise ValueError(
            f"Invalid page size '{config.page_size}': must be a number between 1 and 1000"
        )

    if not _TZ_OFFSET_PATTERN.match(config.default_tz_offset):
        raise ValueError(
            f"Invalid default timezone offset '{config.default_tz_offset}': "
            "expected the form +HH:MM or -HH:MM"
        )

    if config.delete_all:
        logger.warning(
            "delete_all is set: every entry in %s/%s will be unpublished and deleted",
            config.space_id,
            config.environment_id,
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    space_id: str | None = None,
    environment_id: str | None = None,
    access_token: str | None = None,
    content_root: str | None = None,
    delete_all: bool = False,
    debug: bool = False,
    content_types: list[str] | None = None,
    yaml_fallbacks: dict | None = None,
    sync_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        space_id: Override space id.
        environment_id: Override environment id.
        access_token: Override management token.
        content_root: Override local content directory.
        delete_all: Bulk-delete switch (CLI flag).
        debug: Enable debug logging (CLI flag).
        content_types: Override the content types to sync.
        yaml_fallbacks: Values from the YAML ``contentful`` section.
        sync_fallbacks: Values from the YAML ``sync`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the space id or token is missing after checking
            all sources, or a value is malformed.
    """
    fb = yaml_fallbacks or {}
    sync_fb = sync_fallbacks or {}

    final_space = (
        space_id or os.getenv("CONTENTFUL_SPACE_ID") or fb.get("space_id")
    )
    if not final_space:
        raise ValueError(
            "Contentful space id not found. Set CONTENTFUL_SPACE_ID environment variable, "
            "pass --space-id CLI argument, or add 'space_id' to config.yml."
        )

    final_token = (
        access_token
        or os.getenv("CONTENTFUL_MANAGEMENT_TOKEN")
        or fb.get("access_token")
    )
    if not final_token:
        raise ValueError(
            "Contentful access token not found. Set CONTENTFUL_MANAGEMENT_TOKEN environment "
            "variable, pass --access-token CLI argument, or add 'access_token' to config.yml."
        )

    final_environment = (
        environment_id
        or os.getenv("CONTENTFUL_ENVIRONMENT")
        or fb.get("environment_id")
        or DEFAULT_ENVIRONMENT
    )
    final_root = (
        content_root
        or os.getenv("CONTENT_ROOT")
        or sync_fb.get("content_root")
        or DEFAULT_CONTENT_ROOT
    )
    final_locale = (
        os.getenv("CONTENTFUL_LOCALE") or fb.get("locale") or DEFAULT_LOCALE
    )

    if delete_all:
        final_delete_all = True
    else:
        env_delete = _get_bool_env("CONTENTFUL_DELETE_ALL")
        if env_delete is not None:
            final_delete_all = env_delete
        else:
            final_delete_all = bool(sync_fb.get("delete_all", False))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("CONTENTFUL_SYNC_DEBUG")
        final_debug = bool(env_debug) if env_debug is not None else False

    page_size_raw = os.getenv("CONTENTFUL_PAGE_SIZE")
    if page_size_raw is not None:
        try:
            final_page_size = int(page_size_raw)
        except ValueError:
            raise ValueError(
                f"Invalid CONTENTFUL_PAGE_SIZE '{page_size_raw}': must be a number between 1 and 1000"
            ) from None
    elif "page_size" in fb:
        final_page_size = int(fb["page_size"])
    else:
        final_page_size = DEFAULT_PAGE_SIZE

    config = Config(
        space_id=final_space,
        access_token=final_token.strip(),
        environment_id=final_environment,
        content_root=final_root,
        delete_all=final_delete_all,
        debug=final_debug,
        locale=final_locale,
        page_size=final_page_size,
        default_tz_offset=sync_fb.get("default_tz_offset")
        or DEFAULT_TZ_OFFSET,
        content_types=list(content_types or sync_fb.get("content_types") or []),
        field_mappings=dict(sync_fb.get("field_mappings") or {}),
    )

    validate_config(config)

    return config
