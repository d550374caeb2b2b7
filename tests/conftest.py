"""
Shared pytest fixtures for storage engine tests.
"""

import os
import tempfile

import pytest

from multilog.engine.engine import Engine
from multilog.models.data_file import DataFile


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def data_path(temp_dir):
    """Provide a path for the data file."""
    return os.path.join(temp_dir, "storage.db")


@pytest.fixture
def engine(data_path):
    """Provide an open Engine on a fresh data file."""
    with Engine(data_path) as eng:
        yield eng


@pytest.fixture
def data_file(data_path):
    """Provide an open DataFile on a fresh path."""
    with DataFile(data_path) as df:
        yield df


@pytest.fixture
def sample_pairs():
    """Provide sample (key, value) pairs spread over a few keys."""
    return [
        ("alpha", 5),
        ("alpha", -3),
        ("alpha", 42),
        ("beta", 9),
        ("gamma", 0),
        ("gamma", 2**31 - 1),
        ("gamma", -(2**31)),
    ]
