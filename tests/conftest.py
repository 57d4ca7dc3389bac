"""Pytest configuration to make the project root importable.

This ensures ``import automation.table_manager`` works when tests are run
from the repository root without installing the project.
"""

import os
import sys

import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from automation.table_manager.engine import TableEngine  # noqa: E402


@pytest.fixture
def engine():
    """Engine holding the three sample rows and the default columns."""
    return TableEngine(seed=True)


@pytest.fixture
def empty_engine():
    return TableEngine()
