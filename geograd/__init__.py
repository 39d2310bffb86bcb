"""GeoGrad: Riemannian gradients without closed forms."""

import logging

from .errors import (
    GeogradError,
    ConfigurationError,
    InvalidStepError,
    InvalidBasisError,
    DimensionMismatchError,
    BasePointMismatchError,
    DomainError,
    PointNotOnManifoldError,
    UndefinedAmbientExtensionError,
    BackendCapabilityError,
    NumericalAccuracyError,
)
from .basis import TangentBasis
from .manifold import Manifold
from .manifolds import Euclidean, Sphere, Hyperbolic, SPD

# Differentiation
from . import differentiation
from .differentiation import (
    gradient,
    RiemannianGradientBackend,
    TangentBasisDifferencer,
    TangentDiffBackend,
    assemble_gradient,
    EmbeddingGradientConverter,
    AmbientGradientBackend,
    FiniteDifferenceBackend,
    AutogradBackend,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Core
    'Manifold',
    'TangentBasis',
    'Euclidean',
    'Sphere',
    'Hyperbolic',
    'SPD',
    # Differentiation
    'differentiation',
    'gradient',
    'RiemannianGradientBackend',
    'TangentBasisDifferencer',
    'TangentDiffBackend',
    'assemble_gradient',
    'EmbeddingGradientConverter',
    'AmbientGradientBackend',
    'FiniteDifferenceBackend',
    'AutogradBackend',
    # Errors
    'GeogradError',
    'ConfigurationError',
    'InvalidStepError',
    'InvalidBasisError',
    'DimensionMismatchError',
    'BasePointMismatchError',
    'DomainError',
    'PointNotOnManifoldError',
    'UndefinedAmbientExtensionError',
    'BackendCapabilityError',
    'NumericalAccuracyError',
]
