"""Shared fixtures for core component tests."""

from datetime import UTC, datetime

import pytest

from geomesh_testing import InMemoryNodeStore


@pytest.fixture
def now() -> datetime:
    return datetime.now(UTC)


@pytest.fixture
def node_store() -> InMemoryNodeStore:
    return InMemoryNodeStore()
