"""
Shared test fixtures.
"""

import pytest

from backend.app.core.container import Dependencies

from tests.fakes import make_dependencies


@pytest.fixture
def deps() -> Dependencies:
    """Dependencies wired to healthy in-memory fakes."""
    return make_dependencies()
