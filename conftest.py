import pytest

from tablewalk.tables import default_registry


@pytest.fixture(autouse=True)
def clean_registry():
    """Start every test with an empty default table registry."""
    default_registry.clear()
    yield
    default_registry.clear()
