"""Shared test fixtures."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest

from artifactory_resource.client import ArtifactoryClient
from artifactory_resource.reporter import Reporter


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(log_stream: io.StringIO) -> Reporter:
    """Reporter that records everything, down to DEBUG."""
    return Reporter("DEBUG", stream=log_stream)


@pytest.fixture
def client() -> MagicMock:
    """Stand-in for the Artifactory backend."""
    return MagicMock(spec=ArtifactoryClient)


@pytest.fixture
def candidates() -> list[str]:
    """Search results in the order Artifactory might return them."""
    return [
        "libs-release/app/app-2.0.0.zip",
        "libs-release/app/app-1.0.0.zip",
        "libs-release/app/README.md",
        "libs-release/app/app-1.5.0.zip",
        "libs-release/app/app-1.10.0.zip",
    ]
