"""Exception hierarchy for the GCS publish transform."""

from typing import Optional


class PublishError(Exception):
    """Base exception for all publish errors."""


class ConfigurationError(PublishError):
    """
    Raised when the publisher is constructed with invalid options.

    Always fatal to construction. ``show_stack`` tells the caller the full
    traceback should be surfaced, since this is a setup mistake.
    """

    def __init__(self, message: str, show_stack: bool = True) -> None:
        super().__init__(message)
        self.message = message
        self.show_stack = show_stack


class UploadError(PublishError):
    """Raised when a single file fails to upload."""

    def __init__(self, message: str, object_key: Optional[str] = None) -> None:
        super().__init__(message)
        self.object_key = object_key


class InvalidContentError(UploadError):
    """Raised when a file item carries neither a buffer nor a stream."""
