"""Manifold implementations."""

from .euclidean import Euclidean
from .sphere import Sphere
from .hyperbolic import Hyperbolic
from .spd import SPD

__all__ = [
    # Isometrically embedded
    'Euclidean',
    'Sphere',
    # Non-isometrically embedded
    'Hyperbolic',
    'SPD',
]
