"""
Central pytest configuration for this project.

This file is automatically discovered by pytest and is intended for:

- **Fixtures**: reusable objects or setup logic shared across multiple test files.

Notes
-----
- Contributors should install the package in editable mode
  (`pip install -e .[test]`) so that imports are resolved consistently.
- Keep this file focused on test setup. Do not add application logic here.
"""

import numpy as np
import pytest

from csfgen.engines import PatternScene, PoissonResponseEngine, grating_pattern
from csfgen.session import ThresholdParams

N_UNITS = 32


@pytest.fixture
def rng():
    """Seeded NumPy generator."""
    return np.random.default_rng(0)


@pytest.fixture
def grating_scene():
    """Sine-phase grating over N_UNITS positions, 2 cycles."""
    return PatternScene(grating_pattern(N_UNITS, cycles=2))


@pytest.fixture
def poisson_engine():
    """Single time-bin Poisson engine with 50 counts per unit at zero contrast."""
    return PoissonResponseEngine(rate=50.0, n_units=N_UNITS)


@pytest.fixture
def coarse_threshold_params():
    """Small grid (5 stimulus levels) for quick runs."""
    return ThresholdParams(
        log_thresh_limit_low=2.0,
        log_thresh_limit_high=0.0,
        log_thresh_limit_delta=0.5,
        slope_range_low=0.5,
        slope_range_high=5.0,
        slope_delta=0.5,
    )


def gaussian_classes(rng, n, dim, separation):
    """Two Gaussian classes whose means differ by `separation` along axis 0."""
    null = rng.normal(size=(n, dim))
    test = rng.normal(size=(n, dim))
    test[:, 0] += separation
    return null, test
