"""Tests for the blob write sink."""

import io
from unittest.mock import MagicMock, patch

import pytest
from google.cloud import storage

from gcs_publish.uploader.sink import BlobSink, open_sink


def real_blob(name="site.css"):
    """A library Blob on a bucket without a client; the upload protocols are patched."""
    bucket = storage.Bucket(client=None, name="site-assets")
    return storage.Blob(name, bucket)


@pytest.fixture
def upload_protocols():
    """Patch the client's two upload protocols; yields (multipart, resumable)."""
    response = MagicMock()
    response.json.return_value = {"name": "site.css"}
    with patch.object(storage.Blob, "_do_multipart_upload", return_value=response) as multipart:
        with patch.object(storage.Blob, "_do_resumable_upload", return_value=response) as resumable:
            yield multipart, resumable


class TestOpenSink:
    """Test metadata mapping onto the blob."""

    def test_opens_blob_at_object_key(self):
        bucket = MagicMock()

        sink = open_sink(bucket, "test/file.css", {"contentType": "text/css"})

        bucket.blob.assert_called_once_with("test/file.css")
        assert sink.blob is bucket.blob.return_value

    def test_known_fields_become_blob_properties(self):
        blob = MagicMock()

        BlobSink(
            blob,
            {
                "contentType": "text/css",
                "contentEncoding": "gzip",
                "cacheControl": "public, max-age=3600",
            },
        )

        assert blob.content_type == "text/css"
        assert blob.content_encoding == "gzip"
        assert blob.cache_control == "public, max-age=3600"

    def test_unknown_fields_become_custom_metadata(self):
        blob = MagicMock()

        BlobSink(blob, {"contentType": "text/css", "buildId": 42, "metadata": {"team": "web"}})

        assert blob.metadata == {"buildId": "42", "team": "web"}


@pytest.mark.asyncio
class TestBlobSinkWrites:
    """Test that writes reach the storage client with the right arguments."""

    async def test_write_buffer_uses_single_request_upload(self):
        blob = MagicMock()
        sink = BlobSink(blob, {"contentType": "text/css"}, predefined_acl="publicRead", timeout=30)

        await sink.write_buffer(b"body{}")

        blob.upload_from_string.assert_called_once_with(
            b"body{}",
            content_type="text/css",
            predefined_acl="publicRead",
            timeout=30,
        )

    async def test_write_stream_passes_stream_and_size(self):
        blob = MagicMock()
        stream = io.BytesIO(b"abc")
        sink = BlobSink(blob, {"contentType": "text/plain"})

        written = await sink.write_stream(stream, size=3)

        blob.upload_from_file.assert_called_once_with(
            stream,
            size=3,
            rewind=False,
            content_type="text/plain",
            predefined_acl=None,
        )
        assert written == 3

    async def test_unsized_stream_is_sent_as_buffer(self):
        blob = MagicMock()
        sink = BlobSink(blob, {"contentType": "text/plain"})

        written = await sink.write_stream(io.BytesIO(b"abcdef"))

        blob.upload_from_string.assert_called_once_with(
            b"abcdef", content_type="text/plain", predefined_acl=None
        )
        blob.upload_from_file.assert_not_called()
        assert written == 6

    async def test_client_errors_propagate(self):
        blob = MagicMock()
        blob.upload_from_string.side_effect = ConnectionError("reset by peer")
        sink = BlobSink(blob, {"contentType": "text/css"})

        with pytest.raises(ConnectionError, match="reset by peer"):
            await sink.write_buffer(b"x")


@pytest.mark.asyncio
class TestUploadProtocol:
    """Test which upload protocol the storage client ends up using."""

    async def test_unsized_stream_uses_single_request_upload(self, upload_protocols):
        multipart, resumable = upload_protocols
        sink = BlobSink(real_blob(), {"contentType": "text/css"}, predefined_acl="publicRead")

        await sink.write_stream(io.BytesIO(b"body{}"), size=None)

        assert multipart.call_count == 1
        assert resumable.call_count == 0
        assert multipart.call_args.args[3] == len(b"body{}")

    async def test_sized_stream_uses_single_request_upload(self, upload_protocols):
        multipart, resumable = upload_protocols
        sink = BlobSink(real_blob(), {"contentType": "text/css"})

        await sink.write_stream(io.BytesIO(b"body{}"), size=6)

        assert multipart.call_count == 1
        assert resumable.call_count == 0

    async def test_buffer_uses_single_request_upload(self, upload_protocols):
        multipart, resumable = upload_protocols
        sink = BlobSink(real_blob(), {"contentType": "text/css"}, timeout=30)

        await sink.write_buffer(b"body{}")

        assert multipart.call_count == 1
        assert resumable.call_count == 0
        assert multipart.call_args.kwargs["timeout"] == 30
