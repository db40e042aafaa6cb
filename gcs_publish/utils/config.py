"""
Environment configuration loader for gcs-publish.

Reads publish settings from a ``.env`` file (via python-dotenv) and the
process environment. Nothing is required here: missing connection fields are
reported by ``validate_config`` once all sources are merged.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class PublishSettings:
    """Publish settings taken from the environment."""

    # Google Cloud Storage
    gcs_bucket: Optional[str] = None
    project_id: Optional[str] = None
    base_path: str = ""
    public: bool = False

    # Google Cloud Authentication
    google_credentials_path: Optional[str] = None

    upload_timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "PublishSettings":
        """
        Load settings from environment variables.

        Loads ``env_file`` (default: ``.env`` in the working directory) first
        if it exists; variables already set in the environment win.

        Variables:
            GCS_BUCKET, GCS_PROJECT_ID (or GOOGLE_CLOUD_PROJECT),
            GOOGLE_APPLICATION_CREDENTIALS, GCS_BASE_PATH, GCS_PUBLIC,
            GCS_UPLOAD_TIMEOUT_SECONDS

        Raises:
            ValueError: If GCS_UPLOAD_TIMEOUT_SECONDS is not a number
        """
        env_path = env_file if env_file is not None else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        timeout_raw = os.getenv("GCS_UPLOAD_TIMEOUT_SECONDS", "60")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(
                f"GCS_UPLOAD_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
            ) from None

        return cls(
            gcs_bucket=os.getenv("GCS_BUCKET") or None,
            project_id=os.getenv("GCS_PROJECT_ID") or os.getenv("GOOGLE_CLOUD_PROJECT") or None,
            base_path=os.getenv("GCS_BASE_PATH", ""),
            public=os.getenv("GCS_PUBLIC", "false").strip().lower() in TRUTHY,
            google_credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None,
            upload_timeout_seconds=timeout,
        )

    def to_options(self) -> Dict[str, Any]:
        """Options mapping for ``validate_config``; unset fields are omitted."""
        options: Dict[str, Any] = {
            "base": self.base_path,
            "public": self.public,
            "timeout": self.upload_timeout_seconds,
        }
        if self.gcs_bucket:
            options["bucket"] = self.gcs_bucket
        if self.project_id:
            options["project_id"] = self.project_id
        if self.google_credentials_path:
            options["key_filename"] = self.google_credentials_path
        return options


# Global settings instance (lazy-loaded)
_settings: Optional[PublishSettings] = None


def get_settings() -> PublishSettings:
    """
    Get or create the publish settings singleton.

    Example:
        >>> settings = get_settings()
        >>> print(settings.gcs_bucket)
        site-assets
    """
    global _settings
    if _settings is None:
        _settings = PublishSettings.from_env()
    return _settings
