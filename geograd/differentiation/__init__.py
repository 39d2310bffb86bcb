"""Gradient approximation and conversion on Riemannian manifolds."""

from .backends import (
    AmbientGradientBackend,
    FiniteDifferenceBackend,
    AutogradBackend,
    DEFAULT_FORWARD_STEP,
    DEFAULT_CENTRAL_STEP,
)
from .riemannian import RiemannianGradientBackend, gradient
from .tangent import (
    TangentBasisDifferencer,
    TangentDiffBackend,
    assemble_gradient,
    DEFAULT_BASIS_ATOL,
)
from .embedding import EmbeddingGradientConverter

__all__ = [
    # Entry point
    'gradient',
    'RiemannianGradientBackend',
    # Intrinsic mode
    'TangentBasisDifferencer',
    'TangentDiffBackend',
    'assemble_gradient',
    # Embedding mode
    'EmbeddingGradientConverter',
    'AmbientGradientBackend',
    'FiniteDifferenceBackend',
    'AutogradBackend',
    # Defaults
    'DEFAULT_FORWARD_STEP',
    'DEFAULT_CENTRAL_STEP',
    'DEFAULT_BASIS_ATOL',
]
