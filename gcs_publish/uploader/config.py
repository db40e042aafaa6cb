"""
Upload configuration and its validation.

The publisher is configured from a plain options mapping, the same shape a
YAML job file or CLI flags produce:

    >>> config = validate_config({
    ...     "bucket": "site-assets",
    ...     "project_id": "my-project",
    ...     "key_filename": "/secrets/publisher.json",
    ...     "base": "/static",
    ...     "public": True,
    ...     "metadata": {"cacheControl": "public, max-age=3600"},
    ... })
    >>> config.base_path
    '/static'
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from gcs_publish.uploader.errors import ConfigurationError
from gcs_publish.uploader.models import FileItem
from gcs_publish.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

KNOWN_OPTIONS = frozenset(
    {
        "bucket",
        "project_id",
        "key_filename",
        "credentials",
        "base",
        "public",
        "metadata",
        "transform_path",
        "client_options",
        "timeout",
    }
)

PathTransformer = Callable[[FileItem], str]


@dataclass(frozen=True)
class UploadConfig:
    """
    Validated configuration for one publisher instance.

    Attributes:
        bucket_name: GCS bucket name (without gs:// prefix)
        project_id: Google Cloud project id
        key_filename: Path to a service-account JSON key file
        credentials: Service-account info mapping or google.auth Credentials
        base_path: Prefix prepended to every object key
        is_public: Upload objects with the publicRead predefined ACL
        extra_metadata: Metadata merged into every object's metadata
        path_transformer: Callable replacing the default object key logic
        client_options: Options forwarded to google.cloud.storage.Client
        timeout: Per-request timeout handed to the storage client, in seconds
    """

    bucket_name: str
    project_id: str
    key_filename: Optional[str] = None
    credentials: Any = field(default=None, repr=False)
    base_path: str = ""
    is_public: bool = False
    extra_metadata: Mapping[str, Any] = field(default_factory=dict)
    path_transformer: Optional[PathTransformer] = None
    client_options: Mapping[str, Any] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        # Freeze the mappings too, not just the attribute bindings
        object.__setattr__(self, "extra_metadata", MappingProxyType(dict(self.extra_metadata)))
        object.__setattr__(self, "client_options", MappingProxyType(dict(self.client_options)))


def _check(
    bucket_name: Optional[str],
    key_filename: Optional[str],
    credentials: Any,
    project_id: Optional[str],
) -> None:
    if not bucket_name:
        raise ConfigurationError("Bucket name must be specified via `bucket`")
    if not key_filename and not credentials:
        raise ConfigurationError(
            "credentials must be specified via `key_filename` or `credentials`"
        )
    if key_filename and credentials:
        raise ConfigurationError(
            "credentials must be specified via only one of `key_filename` or `credentials`"
        )
    if not project_id:
        raise ConfigurationError("projectId must be specified via `project_id`")


def _resolve_timeout(value: Any) -> float:
    if value is None:
        return DEFAULT_TIMEOUT_SECONDS
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigurationError("`timeout` must be a positive number")
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError("`timeout` must be a positive number") from None
    if not timeout > 0:
        raise ConfigurationError("`timeout` must be a positive number")
    return timeout


def validate_config(options: Union[Mapping[str, Any], UploadConfig, None]) -> UploadConfig:
    """
    Check required connection fields and build an UploadConfig.

    Checks run in order and stop at the first violation: options present,
    bucket name, a credential source (exactly one), project id.

    Args:
        options: Options mapping, or an UploadConfig to re-check

    Returns:
        Frozen UploadConfig

    Raises:
        ConfigurationError: If a required field is missing or contradictory
    """
    if options is None:
        raise ConfigurationError("Missing configuration object")

    if isinstance(options, UploadConfig):
        _check(options.bucket_name, options.key_filename, options.credentials, options.project_id)
        return options

    if not isinstance(options, Mapping):
        raise ConfigurationError(
            f"Missing configuration object (got {type(options).__name__})"
        )

    _check(
        options.get("bucket"),
        options.get("key_filename"),
        options.get("credentials"),
        options.get("project_id"),
    )

    unknown = sorted(set(options) - KNOWN_OPTIONS)
    if unknown:
        logger.warning(f"Ignoring unknown publish options: {unknown}")

    transform_path = options.get("transform_path")
    if transform_path is not None and not callable(transform_path):
        raise ConfigurationError("`transform_path` must be callable")

    timeout = _resolve_timeout(options.get("timeout"))

    config = UploadConfig(
        bucket_name=str(options["bucket"]),
        project_id=str(options["project_id"]),
        key_filename=options.get("key_filename"),
        credentials=options.get("credentials"),
        base_path=options.get("base") or "",
        is_public=bool(options.get("public", False)),
        extra_metadata=options.get("metadata") or {},
        path_transformer=transform_path,
        client_options=options.get("client_options") or {},
        timeout=timeout,
    )
    logger.debug(
        f"Validated publish configuration: bucket={config.bucket_name}, "
        f"base={config.base_path!r}, public={config.is_public}"
    )
    return config
