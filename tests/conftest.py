# tests/conftest.py

"""Fixtures applied to every test module."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def mock_sleep() -> Iterator[MagicMock]:
    """Retry backoff and inter-resource pauses return immediately."""
    with patch("time.sleep") as sleep:
        yield sleep
