"""
Shared fixtures for the cluster crossover tests.
"""
import pytest

from cluster_crossover import Labeling


def make_labeling(mapping, source, **kwargs):
    """Helper to create a Labeling for testing."""
    return Labeling(mapping, source=source, **kwargs)


@pytest.fixture
def coarse():
    """Everything in one cluster."""
    return make_labeling({'a': 'x', 'b': 'x', 'c': 'x', 'd': 'x'}, 'L0')


@pytest.fixture
def first():
    return make_labeling({'a': 1, 'b': 1, 'c': 2, 'd': 2}, 'L1')


@pytest.fixture
def second():
    return make_labeling({'a': 1, 'b': 2, 'c': 2, 'd': 2}, 'L2')


@pytest.fixture
def chain(coarse, first, second):
    return [coarse, first, second]
