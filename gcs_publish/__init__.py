"""
gcs-publish

Streams build output to Google Cloud Storage: every file is uploaded under a
normalized object key with its content type, gzip encoding and access policy
derived from the file and the publisher configuration.

This package provides:
- uploader: the publish transform (config validation, key/metadata/ACL derivation, upload)
- utils: logging, environment settings, YAML job files and Prometheus metrics
"""

__version__ = "0.1.0"

from gcs_publish.utils.logging import setup_logging

# Initialize default logging configuration
setup_logging()

from gcs_publish.uploader import (  # noqa: E402
    ConfigurationError,
    FileItem,
    GcsPublisher,
    UploadConfig,
    UploadError,
    validate_config,
)

__all__ = [
    "ConfigurationError",
    "FileItem",
    "GcsPublisher",
    "UploadConfig",
    "UploadError",
    "validate_config",
]
