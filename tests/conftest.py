"""Shared pytest fixtures for fieldcheck unit and integration tests."""
from __future__ import annotations

import pytest

from fieldcheck.pool import configure_pools
from tests.fixtures import RecordingChecker


@pytest.fixture()
def checker() -> RecordingChecker:
    """Checker that knows a handful of rows in five tables."""
    return RecordingChecker(
        present={
            ("categories", "id"): [1, 2, 3],
            ("users", "email"): ["john@x.com", "jane@x.com"],
            ("products", "id"): [10, 11, 12],
            ("roles", "id"): [1, 2],
            ("tags", "name"): ["go", "python"],
        }
    )


@pytest.fixture(params=[True, False], ids=["pooled", "unpooled"])
def pooling(request: pytest.FixtureRequest):
    """Run a test with object pooling on and off."""
    configure_pools(enabled=request.param)
    yield request.param
    configure_pools(enabled=True)
