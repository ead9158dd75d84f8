"""Shared fixtures."""

import pytest

from tests.helpers.fakes import FakeClock, RecordingSleep


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    """Sleep that records delays."""
    return RecordingSleep()
