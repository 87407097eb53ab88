"""Pytest configuration helpers for test collection.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally, and provide the sample
graphs shared by the unit and backend tests.
"""
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def sample_arr():
    return {
        'a': 'b',
        'b': {
            'c': 'd',
        },
    }


@pytest.fixture
def sample_obj():
    obj = SimpleNamespace()
    obj.a = SimpleNamespace()
    obj.a.nextLevel = {
        'arrayLevel': 'part 1',
        'nextLevel': {
            'recursiveLevel': 'yes',
        },
    }
    return obj
