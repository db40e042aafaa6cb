"""
Write sink for a single GCS object.

Wraps a ``google.cloud.storage.Blob`` so the publisher can write either a
buffer or a stream and await the result. The storage client is synchronous,
so each upload call is handed to ``asyncio.to_thread`` and the event loop
never blocks on network I/O.

Uploads are single-request (multipart, non-resumable): buffers always carry
their size, and streams without a declared size are read into a buffer
first. The client itself switches to its resumable protocol for bodies over
its multipart limit (8 MiB).

Both write methods return the number of bytes sent.
"""

import asyncio
from typing import Any, BinaryIO, Dict, Mapping, Optional

from google.cloud import storage

from gcs_publish.utils.logging import get_logger

logger = get_logger(__name__)

# Object resource fields with a matching Blob property
BLOB_PROPERTIES = {
    "cacheControl": "cache_control",
    "contentDisposition": "content_disposition",
    "contentEncoding": "content_encoding",
    "contentLanguage": "content_language",
    "contentType": "content_type",
}


class BlobSink:
    """
    One-shot upload target for a single object key.

    Attributes:
        blob: Blob handle the bytes are written to
        predefined_acl: Predefined ACL applied by the upload request
        timeout: Request timeout passed to the storage client, in seconds
    """

    def __init__(
        self,
        blob: storage.Blob,
        metadata: Mapping[str, Any],
        predefined_acl: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.blob = blob
        self.predefined_acl = predefined_acl
        self.timeout = timeout
        self._apply_metadata(metadata)

    def _apply_metadata(self, metadata: Mapping[str, Any]) -> None:
        custom: Dict[str, str] = {}
        for key, value in metadata.items():
            if key in BLOB_PROPERTIES:
                setattr(self.blob, BLOB_PROPERTIES[key], value)
            elif key == "metadata" and isinstance(value, Mapping):
                custom.update({str(k): str(v) for k, v in value.items()})
            else:
                custom[key] = str(value)

        if custom:
            self.blob.metadata = custom

    def _upload_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "content_type": self.blob.content_type,
            "predefined_acl": self.predefined_acl,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs

    async def write_buffer(self, data: bytes) -> int:
        """Upload an in-memory buffer in one request."""
        logger.debug(f"Writing {len(data)} bytes to {self.blob.name}")
        await asyncio.to_thread(self.blob.upload_from_string, data, **self._upload_kwargs())
        return len(data)

    async def write_stream(self, stream: BinaryIO, size: Optional[int] = None) -> int:
        """
        Upload from a readable binary stream, starting at its current position.

        The client only sends a single-request upload when the size is known,
        so a stream without a size is read to the end first and sent as a
        buffer.
        """
        if size is None:
            data = await asyncio.to_thread(stream.read)
            logger.debug(f"Read unsized stream for {self.blob.name} ({len(data)} bytes)")
            return await self.write_buffer(data)

        logger.debug(f"Streaming {size} bytes to {self.blob.name}")
        await asyncio.to_thread(
            self.blob.upload_from_file,
            stream,
            size=size,
            rewind=False,
            **self._upload_kwargs(),
        )
        return size


def open_sink(
    bucket: storage.Bucket,
    object_key: str,
    metadata: Mapping[str, Any],
    predefined_acl: Optional[str] = None,
    timeout: Optional[float] = None,
) -> BlobSink:
    """
    Open a write sink for ``object_key`` in ``bucket``.

    Example:
        >>> sink = open_sink(bucket, "static/app.css", {"contentType": "text/css"})
        >>> await sink.write_buffer(b"body { margin: 0 }")
    """
    return BlobSink(bucket.blob(object_key), metadata, predefined_acl, timeout)
