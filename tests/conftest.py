"""Pytest configuration and fixtures."""

import math
import pytest
import torch
from geograd import Euclidean, Sphere, Hyperbolic, SPD


DTYPE = torch.float64


@pytest.fixture
def generator():
    """Seeded random source, passed explicitly instead of global seeding."""
    return torch.Generator().manual_seed(42)


@pytest.fixture
def sphere():
    """Fixture for Sphere manifold."""
    return Sphere(8)


@pytest.fixture
def spd():
    """Fixture for SPD manifold."""
    return SPD(3)


@pytest.fixture(params=['euclidean', 'sphere', 'hyperbolic', 'spd'])
def manifold(request):
    """Fixture that parametrizes over all manifolds."""
    if request.param == 'euclidean':
        return Euclidean(6)
    elif request.param == 'sphere':
        return Sphere(6)
    elif request.param == 'hyperbolic':
        return Hyperbolic(4)
    elif request.param == 'spd':
        return SPD(3)


@pytest.fixture
def point(manifold, generator):
    """Random float64 point on the parametrized manifold."""
    if isinstance(manifold, Hyperbolic):
        # Keep away from the boundary of the ball
        return 0.6 * manifold.random_point(generator=generator, dtype=DTYPE)
    return manifold.random_point(generator=generator, dtype=DTYPE)


@pytest.fixture
def rayleigh(generator):
    """Rayleigh quotient on S^200 ⊂ R^201 at the north pole e_1.

    Returns (manifold, A, p) with A a fixed symmetric 201×201 matrix.
    """
    n = 201
    B = torch.randn(n, n, generator=generator, dtype=DTYPE)
    A = 0.5 * (B + B.T)
    p = torch.zeros(n, dtype=DTYPE)
    p[0] = 1.0
    return Sphere(n), A, p


def rotation(alpha: float) -> torch.Tensor:
    c, s = math.cos(alpha), math.sin(alpha)
    return torch.tensor([[1.0, 0.0, 0.0], [0.0, c, s], [0.0, -s, c]], dtype=DTYPE)


@pytest.fixture
def spd_point():
    """q = R(π/6) diag(1, 2, 3) R(π/6)ᵀ on SPD(3)."""
    R = rotation(math.pi / 6)
    return R @ torch.diag(torch.tensor([1.0, 2.0, 3.0], dtype=DTYPE)) @ R.T
