"""Global fixtures for statfeed tests."""

import matplotlib
matplotlib.use("Agg")

import pytest

from statfeed import Selector, config


@pytest.fixture(autouse=True)
def restore_config():
    """Every test starts and ends with the default config."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def abc_selector():
    """Three options, three decisions, fixed randoms."""
    sel = Selector(['a', 'b', 'c'], 3)
    sel.randoms = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
    return sel


@pytest.fixture
def weighted_selector():
    """Weights 1:2:3 over 600 decisions, seeded."""
    sel = Selector(['low', 'mid', 'high'], 600, rng=1234)
    sel.weights = [[1, 2, 3]] * 600
    return sel
