"""
Shared utilities for gcs-publish.

- logging: Colorized/JSON logging with entry/exit decorators
- config: Environment settings (.env aware)
- config_loader: YAML publish-job files
- metrics: Prometheus collectors for uploads
"""

from gcs_publish.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
