"""
Object metadata and access policy for uploaded files.

Metadata keys follow the GCS JSON API object resource (``contentType``,
``contentEncoding``, ``cacheControl``, ...), so callers can pass the same
names they would see in ``gsutil stat`` output as extra metadata.
"""

import mimetypes
from typing import Any, Dict, Mapping, Optional

from gcs_publish.uploader.models import ContentEncoding

DEFAULT_CONTENT_TYPE = "application/octet-stream"
GZIP_ENCODING = "gzip"
PUBLIC_READ_ACL = "publicRead"


def guess_content_type(file_path: str) -> str:
    """Look up the MIME type registered for the file's extension."""
    content_type, _ = mimetypes.guess_type(file_path, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


def is_gzip_encoded(content_encoding: ContentEncoding) -> bool:
    """
    Check an upstream encoding hint for gzip.

    A string hint is matched as a substring; a list hint matches when any
    element contains "gzip". Matching is case-sensitive.
    """
    if not content_encoding:
        return False
    if isinstance(content_encoding, str):
        return GZIP_ENCODING in content_encoding
    return any(GZIP_ENCODING in str(encoding) for encoding in content_encoding)


def derive_metadata(
    file_path: str,
    content_encoding: ContentEncoding = None,
    extra_metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the object metadata for one file.

    Extra metadata is copied first and ``contentType`` is applied on top, so
    the content type always comes from the file extension.

    Args:
        file_path: Path of the file (already stripped of any ``.gz`` suffix)
        content_encoding: Encoding hint(s) from upstream
        extra_metadata: Static metadata merged into every file

    Returns:
        Metadata dict, e.g. {"contentType": "text/css", "contentEncoding": "gzip"}

    Example:
        >>> derive_metadata("dist/app.css")
        {'contentType': 'text/css'}
    """
    metadata: Dict[str, Any] = dict(extra_metadata or {})
    metadata["contentType"] = guess_content_type(file_path)

    if is_gzip_encoded(content_encoding):
        metadata["contentEncoding"] = GZIP_ENCODING

    return metadata


def resolve_acl(is_public: bool) -> Optional[str]:
    """Map the public flag to a predefined ACL, or None for the bucket default."""
    return PUBLIC_READ_ACL if is_public else None
