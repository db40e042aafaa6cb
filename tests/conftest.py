"""Shared fixtures: a mocked storage client and an isolated metrics registry."""

from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from gcs_publish.utils.metrics import PublishMetrics


@pytest.fixture
def example_options() -> Dict[str, Any]:
    """Minimal valid publisher options."""
    return {
        "bucket": "something",
        "project_id": "some-id",
        "key_filename": "/path/to/something.json",
    }


@pytest.fixture
def metrics() -> PublishMetrics:
    """Metrics bound to a private registry so tests don't collide."""
    return PublishMetrics(registry=CollectorRegistry())


class FakeBucket:
    """Bucket double handing out one MagicMock blob per object key."""

    def __init__(self) -> None:
        self.blobs: Dict[str, MagicMock] = {}
        self.requested: List[str] = []
        self.failing: Dict[str, Exception] = {}

    def blob(self, name: str) -> MagicMock:
        self.requested.append(name)
        blob = MagicMock(name=f"blob:{name}")
        blob.name = name
        if name in self.failing:
            blob.upload_from_string.side_effect = self.failing[name]
            blob.upload_from_file.side_effect = self.failing[name]
        self.blobs[name] = blob
        return blob


@pytest.fixture
def bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def client(bucket: FakeBucket) -> MagicMock:
    """Storage client double whose bucket() returns the fake bucket."""
    mock_client = MagicMock()
    mock_client.bucket.return_value = bucket
    return mock_client
