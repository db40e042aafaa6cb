"""Tests for file items and upload outcomes."""

import io
from pathlib import Path

import pytest

from gcs_publish.uploader.models import (
    BufferContents,
    FileItem,
    StreamContents,
    UploadOutcome,
)


class TestFileItem:
    """Test FileItem construction and derived paths."""

    def test_relative_path_against_base(self):
        item = FileItem.from_bytes("/test/file.css", b"body{}", base="/test/")

        assert item.relative_path == "file.css"

    def test_relative_path_in_subdirectory(self):
        item = FileItem.from_bytes("/site/css/app.css", b"", base="/site")

        assert item.relative_path == "css/app.css"

    def test_relative_path_without_base_is_path(self):
        item = FileItem.from_bytes("file.css", b"")

        assert item.relative_path == "file.css"

    def test_path_outside_base_rejected(self):
        with pytest.raises(ValueError, match="not inside base"):
            FileItem.from_bytes("/other/file.css", b"", base="/test")

    def test_item_without_contents_is_null(self):
        assert FileItem(path="/test/file.css").is_null() is True
        assert FileItem.from_bytes("/test/file.css", b"").is_null() is False

    def test_from_stream_keeps_stream_and_size(self):
        stream = io.BytesIO(b"abc")
        item = FileItem.from_stream("a.txt", stream, size=3, content_encoding="gzip")

        assert isinstance(item.contents, StreamContents)
        assert item.contents.stream is stream
        assert item.contents.size == 3
        assert item.content_encoding == "gzip"

    def test_buffer_repr_hides_data(self):
        item = FileItem.from_bytes("a.txt", b"secret-bytes")

        assert "secret-bytes" not in repr(item)
        assert item.contents.size == len(b"secret-bytes")


class TestFileItemFromPath:
    """Test building items from local files."""

    def test_reads_file_into_buffer(self, tmp_path: Path):
        target = tmp_path / "css" / "app.css"
        target.parent.mkdir()
        target.write_bytes(b"body { margin: 0 }")

        item = FileItem.from_path(target, base=tmp_path)

        assert isinstance(item.contents, BufferContents)
        assert item.contents.data == b"body { margin: 0 }"
        assert item.relative_path == "css/app.css"

    def test_opens_stream_with_size(self, tmp_path: Path):
        target = tmp_path / "app.js"
        target.write_bytes(b"console.log(1)")

        item = FileItem.from_path(target, base=tmp_path, stream=True)
        try:
            assert isinstance(item.contents, StreamContents)
            assert item.contents.size == len(b"console.log(1)")
            assert item.contents.stream.read() == b"console.log(1)"
        finally:
            item.contents.stream.close()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            FileItem.from_path(tmp_path / "missing.css")

    def test_directory_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError, match="not a file"):
            FileItem.from_path(tmp_path)


class TestUploadOutcome:
    """Test UploadOutcome success flag."""

    def test_success_without_error(self):
        outcome = UploadOutcome(item=FileItem(path="a"), object_key="a")

        assert outcome.success is True

    def test_failure_with_error(self):
        outcome = UploadOutcome(item=FileItem(path="a"), error=RuntimeError("boom"))

        assert outcome.success is False
