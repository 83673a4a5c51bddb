"""Shared fixtures for the engram test suite."""

import matplotlib
matplotlib.use("Agg")

import pytest

from engram import EngramSimulator, build_engram_graph


@pytest.fixture
def store():
    """Reference six-node engram graph."""
    return build_engram_graph()


@pytest.fixture
def sim(store):
    """Fresh simulator at t=0 on the reference graph."""
    return EngramSimulator(store)
