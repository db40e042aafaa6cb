"""Object key computation for uploaded files."""

from typing import Optional

from gcs_publish.utils.logging import log_function_call

COMPRESSION_SUFFIX = ".gz"


@log_function_call
def normalize_path(base_path: Optional[str], relative_path: str) -> str:
    """
    Join a configured base prefix and a file's relative path into an object key.

    The base gets exactly one trailing slash and loses one leading slash, so
    "test", "/test", "test/" and "/test/" all produce "test/<relative_path>".
    An empty base leaves the relative path unchanged.

    Example:
        >>> normalize_path("/static", "css/app.css")
        'static/css/app.css'
        >>> normalize_path("", "app.css")
        'app.css'
    """
    base = base_path or ""

    if base and not base.endswith("/"):
        base += "/"

    if base.startswith("/"):
        base = base[1:]

    return base + relative_path


def strip_compression_suffix(path: str) -> str:
    """Remove one trailing ``.gz`` from a path, if present."""
    if path.endswith(COMPRESSION_SUFFIX):
        return path[: -len(COMPRESSION_SUFFIX)]
    return path
