"""Intrinsic finite differences in the tangent space.

For an orthonormal basis X_1, ..., X_d of T_pM the gradient is

    grad f(p) = Σ_i g_p(grad f(p), X_i) X_i = Σ_i Df(p)[X_i] X_i

and each directional derivative is approximated along the retraction curve
t -> R_p(t X_i):

    forward:  G_h(X_i) = (f(R_p(h X_i)) - f(p)) / h
    central:  G_h(X_i) = (f(R_p(h X_i)) - f(R_p(-h X_i))) / (2h)

No embedding is needed, only a retraction, a metric and a basis.
"""

from typing import Callable, Optional, Sequence, Union
import logging
import math

import torch
from torch import Tensor

from ..basis import TangentBasis
from ..errors import (
    ConfigurationError,
    DimensionMismatchError,
    DomainError,
    InvalidBasisError,
    NumericalAccuracyError,
)
from .backends import check_scheme, check_step, default_step, scalar_value
from .riemannian import RiemannianGradientBackend

logger = logging.getLogger(__name__)

#: Tolerance on |G - I| when validating a tangent basis.
DEFAULT_BASIS_ATOL = 1e-8


class TangentBasisDifferencer:
    """
    Directional derivatives along an orthonormal tangent basis.

    Forward differences cost d+1 evaluations of f and d retractions with
    O(h) truncation error; central differences cost 2d evaluations and 2d
    retractions with O(h²) truncation error. Roundoff grows like eps/h in
    both cases, so the best step lies in between. The step is not selected
    automatically: a poor choice silently degrades accuracy unless
    ``error_tolerance`` is set.

    Args:
        step: Step size h > 0 (default: sqrt(eps) for forward, cbrt(eps)
            for central differences)
        scheme: 'forward' (default) or 'central'
        basis_atol: Tolerance for the orthonormality check of the basis
        error_tolerance: If given, estimate the truncation error by
            Richardson comparison with step h/2 and raise
            NumericalAccuracyError when the estimate exceeds it. Doubles
            the cost.
    """

    def __init__(
        self,
        step: Optional[float] = None,
        scheme: str = 'forward',
        basis_atol: float = DEFAULT_BASIS_ATOL,
        error_tolerance: Optional[float] = None,
    ):
        self.scheme = check_scheme(scheme)
        self.step = check_step(default_step(scheme) if step is None else step)
        if basis_atol <= 0:
            raise ConfigurationError(f"Invalid basis_atol value: {basis_atol}")
        if error_tolerance is not None and error_tolerance <= 0:
            raise ConfigurationError(f"Invalid error_tolerance value: {error_tolerance}")
        self.basis_atol = basis_atol
        self.error_tolerance = error_tolerance

    def resolve_basis(self, manifold, p: Tensor, basis: Optional[TangentBasis] = None) -> TangentBasis:
        """Return a validated orthonormal basis of T_pM.

        Uses ``manifold.orthonormal_basis(p)`` when no basis is supplied.

        Raises:
            BasePointMismatchError: Basis is attached to another point
            InvalidBasisError: Basis is not an orthonormal basis of T_pM
        """
        if basis is None:
            basis = manifold.orthonormal_basis(p)
        elif not isinstance(basis, TangentBasis):
            raise InvalidBasisError(f"Expected a TangentBasis, got {type(basis).__name__}")
        basis.check_point(p)
        basis.validate(manifold, atol=self.basis_atol)
        return basis

    def differences(
        self,
        manifold,
        f: Callable[[Tensor], object],
        p: Tensor,
        basis: Optional[TangentBasis] = None,
        step: Optional[float] = None,
    ) -> Tensor:
        """
        Finite-difference estimates of Df(p)[X_i] for every basis vector.

        Exceptions raised by f or by the retraction propagate unchanged.

        Args:
            manifold: Manifold providing retract and the metric
            f: Scalar function on the manifold
            p: Point on the manifold
            basis: Orthonormal basis of T_pM (default: manifold's own)
            step: Override of the configured step size

        Returns:
            1-D tensor of d estimates, aligned with the basis

        Raises:
            DomainError: If f returns a non-finite value along a retraction curve
        """
        h = self.step if step is None else check_step(step)
        basis = self.resolve_basis(manifold, p, basis)
        return self._differences(manifold, f, p, basis, h)

    def _differences(self, manifold, f, p: Tensor, basis: TangentBasis, h: float) -> Tensor:
        """Same as differences, for a basis that has already been resolved."""
        with torch.no_grad():
            estimates = self._estimate(manifold, f, p, basis, h)
            if self.error_tolerance is not None:
                self._check_accuracy(estimates, self._estimate(manifold, f, p, basis, h / 2))

        logger.debug("Tangent differences: d=%d, scheme=%s, step=%g", len(basis), self.scheme, h)
        return estimates

    def _estimate(self, manifold, f, p: Tensor, basis: TangentBasis, h: float) -> Tensor:
        estimates = torch.empty(len(basis), dtype=p.dtype, device=p.device)
        f0 = self._value(f, p) if self.scheme == 'forward' else None
        for i, X in enumerate(basis):
            f_plus = self._value(f, manifold.retract(p, h * X))
            if self.scheme == 'forward':
                estimates[i] = (f_plus - f0) / h
            else:
                f_minus = self._value(f, manifold.retract(p, -h * X))
                estimates[i] = (f_plus - f_minus) / (2 * h)
        return estimates

    @staticmethod
    def _value(f, q: Tensor) -> float:
        value = scalar_value(f(q))
        if not math.isfinite(value):
            raise DomainError(f"Objective returned {value} at a point on the retraction curve")
        return value

    def _check_accuracy(self, coarse: Tensor, fine: Tensor) -> None:
        # Richardson: G_h - G_{h/2} ≈ (1 - 2^-k) C h^k for a method of order k
        factor = 2.0 if self.scheme == 'forward' else 4.0 / 3.0
        estimate = factor * (coarse - fine).abs().max().item()
        logger.debug("Estimated truncation error %.3e (tolerance %.3e)", estimate, self.error_tolerance)
        if estimate > self.error_tolerance:
            raise NumericalAccuracyError(
                f"Estimated finite-difference error {estimate:.3e} exceeds "
                f"tolerance {self.error_tolerance:.3e}; adjust the step size",
                estimate=estimate,
                tolerance=self.error_tolerance,
            )

    def __repr__(self) -> str:
        return f"TangentBasisDifferencer(step={self.step}, scheme='{self.scheme}')"


def assemble_gradient(basis: TangentBasis, estimates: Union[Tensor, Sequence[float]]) -> Tensor:
    """
    Tangent vector with the given coordinates in an orthonormal basis.

    Because the basis is orthonormal in the Riemannian metric, the
    coordinates of the gradient are exactly the directional derivatives and
    no linear system has to be solved.

    Args:
        basis: Orthonormal basis of T_pM
        estimates: One directional-derivative estimate per basis vector

    Returns:
        Σ_i estimates[i] * basis[i]

    Raises:
        DimensionMismatchError: If the number of estimates differs from the
            basis length
    """
    coeffs = torch.as_tensor(estimates, dtype=basis.vectors.dtype, device=basis.vectors.device)
    if coeffs.ndim != 1 or coeffs.shape[0] != len(basis):
        raise DimensionMismatchError(
            f"Got {tuple(coeffs.shape)} estimates for a basis of {len(basis)} vectors"
        )
    return torch.tensordot(coeffs, basis.vectors, dims=1)


class TangentDiffBackend(RiemannianGradientBackend):
    """
    Intrinsic Riemannian gradient by finite differences in the tangent space.

    Combines TangentBasisDifferencer and assemble_gradient. Only needs f on
    the manifold itself.

    Args:
        step: Step size h > 0
        scheme: 'forward' (default) or 'central'
        basis_atol: Tolerance for the orthonormality check of the basis
        error_tolerance: Optional Richardson error bound, see
            TangentBasisDifferencer

    Example:
        >>> S = Sphere(201)
        >>> X = gradient(S, f, p, TangentDiffBackend(step=1e-6))
    """

    def __init__(
        self,
        step: Optional[float] = None,
        scheme: str = 'forward',
        basis_atol: float = DEFAULT_BASIS_ATOL,
        error_tolerance: Optional[float] = None,
    ):
        self.differencer = TangentBasisDifferencer(
            step=step, scheme=scheme, basis_atol=basis_atol, error_tolerance=error_tolerance
        )

    def gradient(self, manifold, f, p: Tensor, basis: Optional[TangentBasis] = None) -> Tensor:
        d = self.differencer
        basis = d.resolve_basis(manifold, p, basis)
        estimates = d._differences(manifold, f, p, basis, d.step)
        return assemble_gradient(basis, estimates)

    def __repr__(self) -> str:
        d = self.differencer
        return f"TangentDiffBackend(step={d.step}, scheme='{d.scheme}')"
