"""
Google Cloud Storage publish transform.

Uploads file items from a build pipeline to a GCS bucket, deriving object
keys, content metadata and predefined ACLs from each item and the
publisher's configuration.
"""

from .config import UploadConfig, validate_config
from .errors import ConfigurationError, InvalidContentError, PublishError, UploadError
from .metadata import derive_metadata, resolve_acl
from .models import (
    BufferContents,
    DestinationDescriptor,
    FileItem,
    StreamContents,
    UploadOutcome,
)
from .paths import normalize_path, strip_compression_suffix
from .uploader import GcsPublisher, create_storage_client

__all__ = [
    "BufferContents",
    "ConfigurationError",
    "DestinationDescriptor",
    "FileItem",
    "GcsPublisher",
    "InvalidContentError",
    "PublishError",
    "StreamContents",
    "UploadConfig",
    "UploadError",
    "UploadOutcome",
    "create_storage_client",
    "derive_metadata",
    "normalize_path",
    "resolve_acl",
    "strip_compression_suffix",
    "validate_config",
]
