#!/usr/bin/env python3
"""
Publish build output to Google Cloud Storage.

CLI wrapper around GcsPublisher. Connection settings come from the
environment (.env aware), then an optional YAML job file, then flags.

Usage:
    python scripts/publish.py dist/
    python scripts/publish.py dist/ --prefix /static --public
    python scripts/publish.py dist/app.css --base-dir dist --metadata cacheControl=no-cache
    python scripts/publish.py dist-gz/ --gzip
    python scripts/publish.py --config publish.yaml
    python scripts/publish.py --example-job > publish.yaml
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from gcs_publish.uploader import ConfigurationError, FileItem, GcsPublisher  # noqa: E402
from gcs_publish.uploader.paths import COMPRESSION_SUFFIX  # noqa: E402
from gcs_publish.utils.config import get_settings  # noqa: E402
from gcs_publish.utils.config_loader import get_job_example, job_to_options, load_job, validate_job  # noqa: E402
from gcs_publish.utils.logging import get_logger, set_correlation_id  # noqa: E402
from gcs_publish.utils.metrics import start_metrics_server  # noqa: E402

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Publish files to Google Cloud Storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Publish a build directory to the bucket root
  %(prog)s dist/

  # Publish under a prefix, publicly readable
  %(prog)s dist/ --prefix /static --public

  # Publish pre-compressed files (app.css.gz is stored as app.css, gzip-encoded)
  %(prog)s dist-gz/ --gzip

  # Attach extra metadata to every object
  %(prog)s dist/ --metadata cacheControl="public, max-age=3600"

  # Run a job file
  %(prog)s --config publish.yaml

  # Start a job file from the example
  %(prog)s --example-job > publish.yaml
        """,
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Files or directories to publish (directories are walked recursively)",
    )
    parser.add_argument("--base-dir", help="Directory object keys are relative to")
    parser.add_argument("-b", "--bucket", help="Destination bucket (default: $GCS_BUCKET)")
    parser.add_argument("--project-id", help="Google Cloud project (default: $GCS_PROJECT_ID)")
    parser.add_argument(
        "-k",
        "--key-file",
        help="Service-account key file (default: $GOOGLE_APPLICATION_CREDENTIALS)",
    )
    parser.add_argument("--prefix", help="Object key prefix (default: $GCS_BASE_PATH)")
    parser.add_argument(
        "-p",
        "--public",
        action="store_true",
        default=None,
        help="Make uploaded objects publicly readable",
    )
    parser.add_argument(
        "-m",
        "--metadata",
        action="append",
        help="Metadata key=value pairs (can specify multiple times)",
    )
    parser.add_argument(
        "-z",
        "--gzip",
        action="store_true",
        help="Treat *.gz files as gzip-encoded content",
    )
    parser.add_argument("-c", "--config", help="YAML publish job file")
    parser.add_argument(
        "--example-job",
        action="store_true",
        help="Print an example job file and exit",
    )
    parser.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    args = parser.parse_args(argv)
    if not args.paths and not args.config and not args.example_job:
        parser.error("at least one path or --config is required")
    return args


def parse_metadata(metadata_args: List[str]) -> Dict[str, str]:
    """Parse metadata arguments into dictionary."""
    metadata: Dict[str, str] = {}
    for item in metadata_args:
        if "=" not in item:
            logger.warning(f"Invalid metadata format (use key=value): {item}")
            continue

        key, value = item.split("=", 1)
        metadata[key.strip()] = value.strip()

    return metadata


def collect_items(path: Path, base_dir: Optional[Path], pattern: str = "**/*", gzip: bool = False) -> List[FileItem]:
    """Wrap a file, or every file under a directory, as buffered file items."""
    if path.is_dir():
        base = base_dir or path
        files = sorted(p for p in path.glob(pattern) if p.is_file())
    else:
        base = base_dir or path.parent
        files = [path]

    items = []
    for file_path in files:
        encoding = ["gzip"] if gzip and file_path.name.endswith(COMPRESSION_SUFFIX) else None
        items.append(FileItem.from_path(file_path, base=base, content_encoding=encoding))
    return items


def build_options(args: argparse.Namespace, job: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge environment settings, job file options and CLI flags (later wins)."""
    options = get_settings().to_options()
    if job is not None:
        options.update(job_to_options(job))

    overrides = {
        "bucket": args.bucket,
        "project_id": args.project_id,
        "key_filename": args.key_file,
        "base": args.prefix,
        "public": args.public,
    }
    options.update({key: value for key, value in overrides.items() if value is not None})

    if args.metadata:
        metadata = dict(options.get("metadata") or {})
        metadata.update(parse_metadata(args.metadata))
        options["metadata"] = metadata

    return options


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for publish CLI."""
    args = parse_args(argv)

    if args.example_job:
        print(get_job_example(), end="")
        return 0

    if args.verbose:
        logging.getLogger("gcs_publish").setLevel(logging.DEBUG)

    job = None
    if args.config:
        try:
            job = load_job(args.config)
        except (OSError, ValueError) as e:
            print(f"❌ Could not load job file: {e}")
            return 1
        issues = validate_job(job)
        if issues:
            print("❌ Invalid job file:")
            for issue in issues:
                print(f"  • {issue}")
            return 1

    try:
        publisher = GcsPublisher(build_options(args, job))
    except (ConfigurationError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        print("\nSet the missing value via flags, the job file, or .env:")
        print("  - GCS_BUCKET / --bucket")
        print("  - GCS_PROJECT_ID / --project-id")
        print("  - GOOGLE_APPLICATION_CREDENTIALS / --key-file")
        return 1

    base_dir = Path(args.base_dir) if args.base_dir else None
    items: List[FileItem] = []
    try:
        for raw_path in args.paths:
            path = Path(raw_path)
            if not path.exists():
                print(f"⚠️  Skipping (not found): {raw_path}")
                continue
            items.extend(collect_items(path, base_dir, gzip=args.gzip))

        for source in (job or {}).get("sources", []):
            items.extend(
                collect_items(
                    Path(source["dir"]),
                    None,
                    pattern=source.get("pattern", "**/*"),
                    gzip=source.get("gzip", args.gzip),
                )
            )
    except (OSError, ValueError) as e:
        print(f"❌ Could not read files: {e}")
        return 1

    if not items:
        print("❌ No files to publish")
        return 1

    if args.metrics_port:
        start_metrics_server(port=args.metrics_port)

    set_correlation_id(f"publish-{publisher.config.bucket_name}")
    print(f"📤 Publishing {len(items)} file(s) to gs://{publisher.config.bucket_name}")
    if publisher.config.base_path:
        print(f"   Prefix: {publisher.config.base_path}")
    print()

    try:
        outcomes = asyncio.run(publisher.upload_all(items))
    except KeyboardInterrupt:
        print("\n⚠️  Publish cancelled by user")
        return 130

    failed = [outcome for outcome in outcomes if not outcome.success]

    print("\n📊 Publish Summary:")
    print(f"  Total: {len(outcomes)}")
    print(f"  ✅ Uploaded: {len(outcomes) - len(failed)}")
    print(f"  ❌ Failed: {len(failed)}")

    if failed:
        print("\n❌ Failed uploads:")
        for outcome in failed:
            print(f"  • {outcome.item.path}: {outcome.error}")
        if args.verbose:
            for outcome in failed:
                logger.error(f"{outcome.item.path} failed", exc_info=outcome.error)

    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
