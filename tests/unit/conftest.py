"""Conftest for unit tests - automatically mark all tests as unit tests."""

import pytest


def pytest_collection_modifyitems(config, items):
    """Automatically mark all tests in the unit directory as unit tests."""
    for item in items:
        # Only items collected from tests/unit, this hook sees the whole session
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)
