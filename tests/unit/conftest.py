"""Shared fixtures for unit tests."""

import pytest

from fakes import FakeCatalog


@pytest.fixture
def fake_catalog():
    """Catalog that returns nothing until a test sets its responder."""
    return FakeCatalog()
