"""Exceptions raised by GeoGrad.

Every failure surfaces to the caller immediately. Nothing in the package
retries a computation or substitutes a default gradient.
"""


class GeogradError(Exception):
    """Base class for all GeoGrad errors."""


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigurationError(GeogradError, ValueError):
    """Invalid arguments supplied to a gradient method or backend."""


class InvalidStepError(ConfigurationError):
    """Finite-difference step size is not strictly positive."""


class InvalidBasisError(ConfigurationError):
    """Tangent basis has the wrong size or is not orthonormal."""


class DimensionMismatchError(ConfigurationError):
    """Number of derivative estimates does not match the basis length."""


class BasePointMismatchError(ConfigurationError):
    """Tangent data attached to a different base point than expected."""


# =============================================================================
# Domain errors
# =============================================================================

class DomainError(GeogradError, ValueError):
    """A point lies outside the set where an operation is defined."""


class PointNotOnManifoldError(DomainError):
    """Point does not satisfy the manifold constraints within tolerance."""


class UndefinedAmbientExtensionError(DomainError):
    """Ambient extension was evaluated outside its domain.

    Numerical differencing perturbs the point off the manifold, so the
    ambient extension has to be defined on a neighbourhood of the point.
    """

    def __init__(self, message: str, point=None):
        super().__init__(message)
        self.point = point


# =============================================================================
# Backend and accuracy errors
# =============================================================================

class BackendCapabilityError(GeogradError, RuntimeError):
    """Differentiation backend cannot handle an operation inside the objective."""


class NumericalAccuracyError(GeogradError, ArithmeticError):
    """Estimated finite-difference error exceeds the requested tolerance.

    Only raised when an error tolerance is explicitly requested.
    """

    def __init__(self, message: str, estimate: float, tolerance: float):
        super().__init__(message)
        self.estimate = estimate
        self.tolerance = tolerance
