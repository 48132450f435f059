"""Tests for file_handler module: encoding-aware reads of source documents."""

from contentful_sync.file_handler import read_file_with_encoding


class TestReadFileWithEncoding:
    """Tests for read_file_with_encoding(path)."""

    def test_utf8(self, tmp_path):
        f = tmp_path / "index.md"
        f.write_text("---\ntitle: Xin chào\n---\n", encoding="utf-8")

        content, encoding = read_file_with_encoding(f)

        assert content == "---\ntitle: Xin chào\n---\n"
        assert encoding == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "index.md"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_non_utf8_is_detected(self, tmp_path):
        f = tmp_path / "index.md"
        text = "Le café est très chaud. " * 20
        f.write_bytes(text.encode("latin-1"))

        content, encoding = read_file_with_encoding(f)

        assert encoding != "utf-8"
        assert "caf" in content
