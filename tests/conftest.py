import os

# Qt widgets are created without a display during tests
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def spike_chunk():
    """1000 zero samples over one second with a single spike of 100."""
    t = np.linspace(0.0, 1.0, 1000)
    y = np.zeros((1000, 1))
    y[500, 0] = 100.0
    return np.column_stack((t, y))
