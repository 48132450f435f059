"""Local source tree discovery and front-matter parsing.

Layout::

    <content_root>/
        projects/               # plural content-type directory
            my-project/         # one directory per record (slug)
                index.md        # front matter + markdown body
                cover.png       # media referenced from the front matter

The content-type id is the directory name with one trailing ``s``
removed (``projects`` -> ``project``).  Directories and records are
visited in sorted order; a record directory without ``index.md`` is
skipped (it may only hold media).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from ..file_handler import read_file_with_encoding
from .errors import SourceError
from .models import LocalRecord

logger = logging.getLogger(__name__)

DOCUMENT_NAME = "index.md"
_YAML_HANDLER = frontmatter.YAMLHandler()


def content_type_for(directory_name: str) -> str:
    """Derive the content-type id from a plural directory name."""
    return directory_name.removesuffix("s")


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split a document into its YAML front matter and body.

    Documents without an opening ``---`` line have no front matter.
    Parsing goes through python-frontmatter's YAML handler; malformed
    front matter is an error rather than being folded into the body.

    Raises:
        ValueError: If the front matter is unterminated, is not valid
            YAML, or is not a mapping.
    """
    text = text.lstrip("\ufeff")
    if not _YAML_HANDLER.detect(text):
        return {}, text

    try:
        raw, body = _YAML_HANDLER.split(text)
    except ValueError:
        raise ValueError("front matter is not terminated by '---'") from None

    try:
        data = _YAML_HANDLER.load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML front matter: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )

    return data, body.removeprefix("\n")


def load_record(
    document: Path, content_type: str
) -> LocalRecord:
    """Read and parse one source document.

    Raises:
        SourceError: If the document cannot be read or parsed.
    """
    try:
        content, _ = read_file_with_encoding(document)
    except OSError as exc:
        raise SourceError(str(document), f"cannot read: {exc}") from exc
    try:
        front_matter, body = split_front_matter(content)
    except ValueError as exc:
        raise SourceError(str(document), str(exc)) from exc

    return LocalRecord(
        content_type=content_type,
        slug=document.parent.name,
        front_matter=front_matter,
        body=body,
        source_dir=document.parent,
    )


def iter_content_dirs(
    content_root: Path, only: Iterable[str] | None = None
) -> Iterator[tuple[str, Path]]:
    """Yield ``(content_type, directory)`` for each content-type directory.

    Args:
        content_root: Root of the source tree.
        only: Optional filter; entries may be plural directory names or
            content-type ids.
    """
    wanted = set(only or [])
    if not content_root.is_dir():
        raise SourceError(str(content_root), "content root is not a directory")

    for directory in sorted(p for p in content_root.iterdir() if p.is_dir()):
        if directory.name.startswith("."):
            continue
        content_type = content_type_for(directory.name)
        if wanted and not ({directory.name, content_type} & wanted):
            continue
        yield content_type, directory


def iter_records(type_dir: Path, content_type: str) -> Iterator[LocalRecord]:
    """Lazily yield the records of one content-type directory."""
    for record_dir in sorted(p for p in type_dir.iterdir() if p.is_dir()):
        document = record_dir / DOCUMENT_NAME
        if not document.is_file():
            logger.debug("Skipping %s: no %s", record_dir, DOCUMENT_NAME)
            continue
        yield load_record(document, content_type)
