"""
Publish-job files.

A job file describes what to publish and where, so a deploy step can run
``scripts/publish.py --config publish.yaml`` instead of repeating flags.

Example job file (publish.yaml):
    ```yaml
    version: "1.0"

    upload:
      bucket: site-assets
      project_id: my-project
      key_filename: /secrets/publisher.json
      base: /static
      public: true
      metadata:
        cacheControl: "public, max-age=3600"

    sources:
      - dir: dist/
        pattern: "**/*"
        gzip: false
    ```

Usage:
    >>> job = load_job("publish.yaml")
    >>> issues = validate_job(job)
    >>> if not issues:
    ...     options = job_to_options(job)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from gcs_publish.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_VERSIONS = ["1.0"]

# Keys under `upload:` that map straight onto publisher options
UPLOAD_KEYS = ["bucket", "project_id", "key_filename", "base", "public", "metadata", "timeout"]


@dataclass
class ConfigIssue:
    """Validation problem found in a job file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def load_job(job_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a publish job from a YAML file.

    Raises:
        FileNotFoundError: If the job file doesn't exist
        ValueError: If the path is not a file, is empty, or is not a mapping
        yaml.YAMLError: If YAML is malformed
    """
    path = Path(job_path)
    logger.info(f"Loading publish job from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Job path is not a file: {path}")

    try:
        with open(path, "r") as f:
            job = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if job is None:
        raise ValueError("Job file is empty")
    if not isinstance(job, dict):
        raise ValueError(f"Job file must contain a mapping, got {type(job).__name__}")

    return job


def validate_job(job: Dict[str, Any]) -> List[ConfigIssue]:
    """
    Validate a job against the expected schema.

    Connection fields (bucket, credentials, project) are not required here;
    they may come from the environment or CLI flags instead.

    Returns:
        List of issues (empty if valid)
    """
    issues: List[ConfigIssue] = []

    if "version" not in job:
        issues.append(ConfigIssue("version", "Missing required field"))
    elif str(job["version"]) not in SUPPORTED_VERSIONS:
        issues.append(
            ConfigIssue(
                "version",
                f"Unsupported version (supported: {SUPPORTED_VERSIONS})",
                job["version"],
            )
        )

    upload = job.get("upload", {})
    if not isinstance(upload, dict):
        issues.append(ConfigIssue("upload", "Must be a mapping", type(upload).__name__))
    else:
        if "public" in upload and not isinstance(upload["public"], bool):
            issues.append(ConfigIssue("upload.public", "Must be true or false", upload["public"]))
        if "metadata" in upload and not isinstance(upload["metadata"], dict):
            issues.append(
                ConfigIssue("upload.metadata", "Must be a mapping", type(upload["metadata"]).__name__)
            )
        if "timeout" in upload and not _is_positive_number(upload["timeout"]):
            issues.append(ConfigIssue("upload.timeout", "Must be a positive number", upload["timeout"]))
        for key in sorted(set(upload) - set(UPLOAD_KEYS)):
            issues.append(ConfigIssue(f"upload.{key}", "Unknown field"))

    issues.extend(_validate_sources(job))

    if issues:
        logger.warning(f"Job validation failed with {len(issues)} issue(s)")
    else:
        logger.info("✓ Job validation passed")

    return issues


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _validate_sources(job: Dict[str, Any]) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []

    if "sources" not in job:
        issues.append(ConfigIssue("sources", "Missing required field"))
        return issues

    sources = job["sources"]
    if not isinstance(sources, list):
        issues.append(ConfigIssue("sources", "Must be a list", type(sources).__name__))
        return issues

    if len(sources) == 0:
        issues.append(ConfigIssue("sources", "Must contain at least one source"))

    for i, source in enumerate(sources):
        prefix = f"sources[{i}]"
        if not isinstance(source, dict):
            issues.append(ConfigIssue(prefix, "Must be a mapping", type(source).__name__))
            continue
        if "dir" not in source:
            issues.append(ConfigIssue(f"{prefix}.dir", "Missing required field"))
        if "pattern" in source and not isinstance(source["pattern"], str):
            issues.append(ConfigIssue(f"{prefix}.pattern", "Must be a string", source["pattern"]))
        if "gzip" in source and not isinstance(source["gzip"], bool):
            issues.append(ConfigIssue(f"{prefix}.gzip", "Must be true or false", source["gzip"]))

    return issues


def job_to_options(job: Dict[str, Any]) -> Dict[str, Any]:
    """Extract publisher options from the job's ``upload`` section."""
    upload = job.get("upload") or {}
    return {key: upload[key] for key in UPLOAD_KEYS if key in upload}


def get_job_example() -> str:
    """Return an example job file."""
    return """version: "1.0"

upload:
  bucket: site-assets
  project_id: my-project
  key_filename: /secrets/publisher.json
  base: /static
  public: true
  metadata:
    cacheControl: "public, max-age=3600"

sources:
  - dir: dist/
    pattern: "**/*"
  - dir: dist-gz/
    pattern: "**/*.gz"
    gzip: true
"""
