"""
Pytest configuration and shared fixtures for FEM tests.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add the parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from watfFEM.discretization.mesh import build_structured_mesh


@pytest.fixture
def tolerance():
    """Default tolerance for floating point comparisons."""
    return 1e-12


@pytest.fixture
def loose_tolerance():
    """Looser tolerance for numerical integration tests."""
    return 1e-8


@pytest.fixture
def unit_square_coords():
    """Node coordinates of the unit square in local order (BL, BR, TL, TR)."""
    return np.array([
        [0.0, 0.0],
        [1.0, 0.0],
        [0.0, 1.0],
        [1.0, 1.0],
    ])


@pytest.fixture
def small_mesh():
    """3 x 2 element mesh of the unit square."""
    return build_structured_mesh((3, 2))
