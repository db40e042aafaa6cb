"""
Streaming upload transform for Google Cloud Storage.

Takes file items produced by a build pipeline and uploads each one to a
bucket, deriving the object key, metadata and ACL from the item and the
publisher's configuration. Each uploaded item is emitted with any trailing
``.gz`` removed from its path; a failing item is reported on its own and
never stops the items after it.

Example usage:
    >>> from gcs_publish.uploader import FileItem, GcsPublisher
    >>> publisher = GcsPublisher({
    ...     "bucket": "site-assets",
    ...     "project_id": "my-project",
    ...     "key_filename": "/secrets/publisher.json",
    ...     "base": "/static",
    ...     "public": True,
    ... })
    >>> items = [FileItem.from_path("dist/app.css", base="dist")]
    >>> async for item in publisher.publish(items):
    ...     print(f"Published {item.path}")
"""

from collections.abc import AsyncIterable
from dataclasses import replace
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Iterable,
    List,
    Mapping,
    Optional,
    Union,
)

from google.cloud import storage
from google.oauth2 import service_account

from gcs_publish.uploader.config import UploadConfig, validate_config
from gcs_publish.uploader.errors import InvalidContentError, PublishError, UploadError
from gcs_publish.uploader.metadata import derive_metadata, resolve_acl
from gcs_publish.uploader.models import (
    BufferContents,
    DestinationDescriptor,
    FileItem,
    StreamContents,
    UploadOutcome,
)
from gcs_publish.uploader.paths import normalize_path, strip_compression_suffix
from gcs_publish.uploader.sink import open_sink
from gcs_publish.utils.logging import get_logger, log_function_call
from gcs_publish.utils.metrics import PublishMetrics, get_metrics

logger = get_logger(__name__)

ItemSource = Union[Iterable[Optional[FileItem]], AsyncIterable]
ErrorHandler = Callable[[FileItem, PublishError], None]


def create_storage_client(config: UploadConfig) -> storage.Client:
    """
    Build a storage client from the configured credential source.

    A key file goes through ``Client.from_service_account_json``; a
    credentials mapping is treated as service-account info; anything else
    in ``credentials`` is passed through as a google.auth Credentials object.
    """
    client_options = dict(config.client_options) or None

    if config.key_filename:
        logger.info(f"Authenticating with key file {config.key_filename}")
        return storage.Client.from_service_account_json(
            config.key_filename,
            project=config.project_id,
            client_options=client_options,
        )

    credentials = config.credentials
    if isinstance(credentials, Mapping):
        credentials = service_account.Credentials.from_service_account_info(dict(credentials))

    logger.info(f"Authenticating with inline credentials for project {config.project_id}")
    return storage.Client(
        project=config.project_id,
        credentials=credentials,
        client_options=client_options,
    )


async def _iterate(items: ItemSource) -> AsyncIterator[Optional[FileItem]]:
    if isinstance(items, AsyncIterable):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


class GcsPublisher:
    """
    Upload transform bound to one bucket.

    The configuration is validated once here and the storage client and
    bucket handle are created once; every upload shares them read-only.

    Args:
        options: Options mapping (see ``validate_config``) or an UploadConfig
        client: Pre-built storage client; created from the options if omitted
        on_uploaded: Called with the object key after each successful upload
        metrics: Metrics sink; the process-wide instance if omitted

    Raises:
        ConfigurationError: If the options are missing required fields
    """

    def __init__(
        self,
        options: Union[Mapping[str, Any], UploadConfig, None],
        client: Optional[storage.Client] = None,
        on_uploaded: Optional[Callable[[str], None]] = None,
        metrics: Optional[PublishMetrics] = None,
    ) -> None:
        self.config = validate_config(options)
        self.client = client if client is not None else create_storage_client(self.config)
        self.bucket = self.client.bucket(self.config.bucket_name)
        self.metrics = metrics if metrics is not None else get_metrics()
        self._on_uploaded = on_uploaded

        # Resolved once: caller's transformer fully replaces the default
        if self.config.path_transformer is not None:
            self._object_key_for: Callable[[FileItem], str] = self.config.path_transformer
        else:
            self._object_key_for = self._default_object_key

        logger.info(
            f"Publisher ready for gs://{self.config.bucket_name} "
            f"(base={self.config.base_path!r}, public={self.config.is_public})"
        )

    def _default_object_key(self, item: FileItem) -> str:
        return normalize_path(self.config.base_path, item.relative_path)

    def describe(self, item: FileItem) -> DestinationDescriptor:
        """Compute object key, metadata and ACL for an already-rewritten item."""
        return DestinationDescriptor(
            object_key=self._object_key_for(item),
            metadata=derive_metadata(item.path, item.content_encoding, self.config.extra_metadata),
            predefined_acl=resolve_acl(self.config.is_public),
        )

    async def _attempt(self, item: Optional[FileItem]) -> UploadOutcome:
        if item is None or item.is_null():
            return UploadOutcome(item=item)

        try:
            item = replace(item, path=strip_compression_suffix(item.path))
            descriptor = self.describe(item)
        except Exception as exc:
            logger.error(f"Could not resolve destination for {item.path}: {exc}", exc_info=True)
            self.metrics.record_upload_failure(bucket=self.config.bucket_name)
            error = UploadError(f"Could not resolve destination for {item.path}: {exc}")
            error.__cause__ = exc
            return UploadOutcome(item=item, error=error)

        object_key = descriptor.object_key
        contents = item.contents

        try:
            sink = open_sink(
                self.bucket,
                object_key,
                descriptor.metadata,
                descriptor.predefined_acl,
                timeout=self.config.timeout,
            )
            with self.metrics.track_upload():
                if isinstance(contents, BufferContents):
                    written = await sink.write_buffer(contents.data)
                elif isinstance(contents, StreamContents):
                    written = await sink.write_stream(contents.stream, contents.size)
                else:
                    raise InvalidContentError(
                        f"Unsupported contents for {item.path}: {type(contents).__name__}",
                        object_key=object_key,
                    )
        except InvalidContentError as exc:
            logger.error(str(exc))
            self.metrics.record_upload_failure(bucket=self.config.bucket_name)
            return UploadOutcome(item=item, object_key=object_key, error=exc)
        except Exception as exc:
            logger.error(f"Upload failed for gs://{self.config.bucket_name}/{object_key}: {exc}", exc_info=True)
            self.metrics.record_upload_failure(bucket=self.config.bucket_name)
            self.metrics.record_gcs_error(error_type=type(exc).__name__)
            error = UploadError(f"Upload failed for {object_key}: {exc}", object_key=object_key)
            error.__cause__ = exc
            return UploadOutcome(item=item, object_key=object_key, error=error)

        self.metrics.record_upload_success(
            bytes_uploaded=written,
            bucket=self.config.bucket_name,
        )
        logger.info(f"Uploaded gs://{self.config.bucket_name}/{object_key}", extra={"object_key": object_key})
        if self._on_uploaded is not None:
            try:
                self._on_uploaded(object_key)
            except Exception as exc:
                # The object is stored; a listener failure does not fail the item
                logger.error(f"on_uploaded listener failed for {object_key}: {exc}", exc_info=True)

        return UploadOutcome(item=item, object_key=object_key)

    @log_function_call
    async def upload(self, item: Optional[FileItem]) -> Optional[FileItem]:
        """
        Upload one item and return it as it should be emitted downstream.

        Null items (None, or an item without contents) come back unchanged
        without touching the bucket.

        Raises:
            UploadError: If the destination cannot be resolved or the write fails
            InvalidContentError: If the item holds neither a buffer nor a stream
        """
        outcome = await self._attempt(item)
        if outcome.error is not None:
            raise outcome.error
        return outcome.item

    async def publish(
        self,
        items: ItemSource,
        on_error: Optional[ErrorHandler] = None,
    ) -> AsyncIterator[Optional[FileItem]]:
        """
        Upload items as they arrive and yield each one once it is stored.

        Args:
            items: Sync or async iterable of file items
            on_error: Called with (item, error) for a failed item, after which
                processing continues. Without it the error is raised to the
                consumer and the stream stops.
        """
        async for item in _iterate(items):
            try:
                uploaded = await self.upload(item)
            except PublishError as exc:
                if on_error is None:
                    raise
                on_error(item, exc)
                continue
            yield uploaded

    async def upload_all(self, items: ItemSource) -> List[UploadOutcome]:
        """
        Upload every item and collect one outcome per item.

        Per-item failures are captured in the outcomes rather than raised.
        """
        outcomes = [await self._attempt(item) async for item in _iterate(items)]

        uploaded = sum(1 for outcome in outcomes if outcome.object_key and outcome.success)
        failed = sum(1 for outcome in outcomes if not outcome.success)
        logger.info(f"Publish complete: {uploaded} uploaded, {failed} failed, {len(outcomes)} total")

        return outcomes
