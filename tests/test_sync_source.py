"""Tests for source tree discovery and front-matter parsing.

Covers:
- split_front_matter with valid, missing, empty and broken front matter
- load_record derives slug and source directory
- iter_content_dirs ordering, filtering and dot-directory skipping
- iter_records skips record directories without index.md
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from fakes import write_record

from contentful_sync.sync.errors import SourceError
from contentful_sync.sync.source import (
    content_type_for,
    iter_content_dirs,
    iter_records,
    load_record,
    split_front_matter,
)

# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


class TestSplitFrontMatter:
    """Tests for split_front_matter()."""

    def test_parses_mapping_and_body(self):
        data, body = split_front_matter(
            "---\ntitle: Hello\ndate: 2024-01-15\n---\n\n# Heading\n"
        )
        assert data == {"title": "Hello", "date": date(2024, 1, 15)}
        assert body == "# Heading\n"

    def test_no_front_matter(self):
        data, body = split_front_matter("# Just markdown\n")
        assert data == {}
        assert body == "# Just markdown\n"

    def test_empty_front_matter(self):
        data, body = split_front_matter("---\n---\nBody")
        assert data == {}
        assert body == "Body"

    def test_bom_is_ignored(self):
        data, _ = split_front_matter("\ufeff---\ntitle: A\n---\n")
        assert data == {"title": "A"}

    def test_crlf_line_endings(self):
        data, body = split_front_matter("---\r\ntitle: A\r\n---\r\nBody\r\n")
        assert data == {"title": "A"}
        assert body == "Body\r\n"

    def test_horizontal_rule_in_body_kept(self):
        data, body = split_front_matter("---\ntitle: A\n---\nIntro\n\n---\n\nMore\n")
        assert data == {"title": "A"}
        assert body == "Intro\n\n---\n\nMore\n"

    def test_unterminated_raises(self):
        with pytest.raises(ValueError, match="not terminated"):
            split_front_matter("---\ntitle: A\nBody")

    def test_invalid_yaml_raises(self):
        with pytest.raises(ValueError, match="invalid YAML"):
            split_front_matter("---\ntitle: [unclosed\n---\n")

    def test_non_mapping_raises(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            split_front_matter("---\n- a\n- b\n---\n")


class TestLoadRecord:
    """Tests for load_record()."""

    def test_record_fields(self, tmp_path: Path):
        record_dir = write_record(
            tmp_path, "posts", "hello-world", "title: Hello\n", body="Text\n"
        )

        record = load_record(record_dir / "index.md", "post")

    def test_unreadable_document_raises_source_error(self, tmp_path: Path):
        document = tmp_path / "posts" / "locked" / "index.md"
        with patch(
            "contentful_sync.sync.source.read_file_with_encoding",
            side_effect=PermissionError("Permission denied"),
        ):
            with pytest.raises(SourceError, match="cannot read: Permission denied"):
                load_record(document, "post")

        assert record.content_type == "post"
        assert record.slug == "hello-world"
        assert record.front_matter == {"title": "Hello"}
        assert record.body == "Text\n"
        assert record.source_dir == record_dir

    def test_broken_document_raises_source_error(self, tmp_path: Path):
        record_dir = tmp_path / "posts" / "broken"
        record_dir.mkdir(parents=True)
        (record_dir / "index.md").write_text("---\ntitle: A\n", encoding="utf-8")

        with pytest.raises(SourceError, match="broken"):
            load_record(record_dir / "index.md", "post")

    def test_non_utf8_document(self, tmp_path: Path):
        record_dir = tmp_path / "posts" / "latin"
        record_dir.mkdir(parents=True)
        (record_dir / "index.md").write_bytes(
            "---\ntitle: Café crème\n---\nDéjà vu, naïve façade.\n".encode("cp1252")
        )

        record = load_record(record_dir / "index.md", "post")

        assert record.front_matter["title"].startswith("Caf")


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


class TestTreeWalk:
    """Tests for iter_content_dirs() and iter_records()."""

    def test_content_type_for(self):
        assert content_type_for("projects") == "project"
        assert content_type_for("news") == "new"
        assert content_type_for("staff") == "staff"

    def test_dirs_sorted_and_dot_dirs_skipped(self, tmp_path: Path):
        for name in ("posts", "authors", ".git", "projects"):
            (tmp_path / name).mkdir()
        (tmp_path / "README.md").write_text("x")

        found = [ct for ct, _ in iter_content_dirs(tmp_path)]

        assert found == ["author", "post", "project"]

    def test_filter_accepts_directory_or_type_names(self, tmp_path: Path):
        for name in ("posts", "authors", "projects"):
            (tmp_path / name).mkdir()

        found = [ct for ct, _ in iter_content_dirs(tmp_path, ["posts", "author"])]

        assert found == ["author", "post"]

    def test_missing_root_raises(self, tmp_path: Path):
        with pytest.raises(SourceError, match="not a directory"):
            list(iter_content_dirs(tmp_path / "missing"))

    def test_records_sorted_and_media_only_dirs_skipped(self, tmp_path: Path):
        write_record(tmp_path, "posts", "b-post", "title: B\n")
        write_record(tmp_path, "posts", "a-post", "title: A\n")
        (tmp_path / "posts" / "shared-media").mkdir()

        records = list(iter_records(tmp_path / "posts", "post"))

        assert [r.slug for r in records] == ["a-post", "b-post"]
