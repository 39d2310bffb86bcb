"""Ambient (Euclidean) gradient backends.

A backend has a single capability, ``ambient_gradient(F, p)``: the Euclidean
gradient of a scalar function F at p, returned with the shape of p. Two
adapters are provided:

* :class:`FiniteDifferenceBackend`: coordinate-wise finite differences.
  Works for any F that can be evaluated on a neighbourhood of p, including
  functions implemented with numpy.
* :class:`AutogradBackend`: ``torch.autograd`` (reverse mode) or
  ``torch.func.jacfwd`` (forward mode). Exact up to floating point, but every
  operation inside F has to be traceable by PyTorch.

Backends are chosen explicitly by the caller. An autograd failure is never
papered over with a numerical fallback.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging
import math

import numpy as np
import torch
from torch import Tensor

from ..errors import (
    BackendCapabilityError,
    ConfigurationError,
    InvalidStepError,
    UndefinedAmbientExtensionError,
)

logger = logging.getLogger(__name__)

_EPS = float(np.finfo(np.float64).eps)

#: Default forward-difference step, sqrt(eps) for float64.
DEFAULT_FORWARD_STEP = math.sqrt(_EPS)
#: Default central-difference step, cbrt(eps) for float64.
DEFAULT_CENTRAL_STEP = _EPS ** (1.0 / 3.0)

SCHEMES = ('forward', 'central')


def check_step(step) -> float:
    """Validate a finite-difference step size and return it as a float."""
    try:
        h = float(step)
    except (TypeError, ValueError):
        raise InvalidStepError(f"Invalid step size: {step!r}") from None
    if not (h > 0.0 and math.isfinite(h)):
        raise InvalidStepError(f"Invalid step size: {step}")
    return h


def check_scheme(scheme: str) -> str:
    if scheme not in SCHEMES:
        raise ConfigurationError(f"Scheme must be 'forward' or 'central', got {scheme!r}")
    return scheme


def default_step(scheme: str) -> float:
    return DEFAULT_FORWARD_STEP if scheme == 'forward' else DEFAULT_CENTRAL_STEP


def scalar_value(value) -> float:
    """Convert an objective value (float, tensor or numpy scalar) to float.

    Raises:
        ConfigurationError: If the value has more than one element
    """
    if isinstance(value, Tensor):
        value = value.detach().cpu()
    arr = np.asarray(value, dtype=np.float64)
    if arr.size != 1:
        raise ConfigurationError(
            f"Objective must return a scalar, got a value of shape {arr.shape}"
        )
    return float(arr.reshape(()))


class AmbientGradientBackend(ABC):
    """Computes Euclidean gradients of functions on the ambient space."""

    @abstractmethod
    def ambient_gradient(self, F: Callable[[Tensor], object], p: Tensor) -> Tensor:
        """
        Euclidean gradient of F at p.

        Args:
            F: Scalar function on the ambient space
            p: Point in ambient coordinates

        Returns:
            Tensor with the shape and dtype of p
        """
        pass


class FiniteDifferenceBackend(AmbientGradientBackend):
    """
    Euclidean gradient by coordinate-wise finite differences.

    Forward differences cost n+1 evaluations of F with O(h) truncation error,
    central differences 2n evaluations with O(h²) truncation error; roundoff
    grows like eps/h for both. The step is never tuned automatically, and a
    poorly chosen step silently degrades accuracy.

    F is evaluated at points off the manifold, so it has to be defined on an
    open ambient neighbourhood of p.

    Args:
        step: Step size h > 0 (default: sqrt(eps) for forward, cbrt(eps)
            for central differences)
        scheme: 'central' (default) or 'forward'
        relative: Scale the step per coordinate as h * max(1, |x_i|)
        domain: Optional predicate on ambient points; every perturbed point is
            checked before F is evaluated there

    Example:
        >>> backend = FiniteDifferenceBackend(step=1e-6)
        >>> F = lambda x: (x ** 2).sum()
        >>> g = backend.ambient_gradient(F, torch.ones(3, dtype=torch.float64))  # ≈ [2, 2, 2]
    """

    def __init__(
        self,
        step: Optional[float] = None,
        scheme: str = 'central',
        relative: bool = False,
        domain: Optional[Callable[[Tensor], bool]] = None,
    ):
        self.scheme = check_scheme(scheme)
        self.step = check_step(default_step(scheme) if step is None else step)
        self.relative = relative
        self.domain = domain

    def _evaluate(self, F, x: Tensor) -> float:
        if self.domain is not None and not self.domain(x):
            raise UndefinedAmbientExtensionError(
                "Ambient extension evaluated outside its declared domain", point=x
            )
        value = scalar_value(F(x))
        if not math.isfinite(value):
            raise UndefinedAmbientExtensionError(
                f"Ambient extension returned {value} at a perturbed point", point=x
            )
        return value

    def ambient_gradient(self, F, p: Tensor) -> Tensor:
        with torch.no_grad():
            x = p.detach()
            flat = x.reshape(-1)
            grad = torch.empty_like(flat)
            f0 = self._evaluate(F, x) if self.scheme == 'forward' else None

            for i in range(flat.numel()):
                xi = flat[i].item()
                h = self.step * max(1.0, abs(xi)) if self.relative else self.step

                plus = flat.clone()
                plus[i] = xi + h
                f_plus = self._evaluate(F, plus.reshape(x.shape))

                if self.scheme == 'forward':
                    # Divide by the representable step, not the nominal one
                    grad[i] = (f_plus - f0) / (plus[i].item() - xi)
                else:
                    minus = flat.clone()
                    minus[i] = xi - h
                    f_minus = self._evaluate(F, minus.reshape(x.shape))
                    grad[i] = (f_plus - f_minus) / (plus[i].item() - minus[i].item())

        logger.debug("Finite-difference ambient gradient: %d coordinates, scheme=%s, step=%g",
                     flat.numel(), self.scheme, self.step)
        return grad.reshape(x.shape)

    def __repr__(self) -> str:
        return (f"FiniteDifferenceBackend(step={self.step}, scheme='{self.scheme}', "
                f"relative={self.relative})")


class AutogradBackend(AmbientGradientBackend):
    """
    Euclidean gradient by PyTorch automatic differentiation.

    F receives a tensor and must return a one-element tensor computed with
    differentiable torch operations. An objective that leaves the graph
    (e.g. through ``.numpy()`` or ``.item()``), uses an operation without a
    derivative, or returns something other than a tensor raises
    BackendCapabilityError in both modes. Forward mode evaluates F once more to
    check this before calling jacfwd. There is no numerical fallback.

    Args:
        mode: 'reverse' (torch.autograd.grad, default) or 'forward'
            (torch.func.jacfwd)
    """

    def __init__(self, mode: str = 'reverse'):
        if mode not in ('reverse', 'forward'):
            raise ConfigurationError(f"Mode must be 'reverse' or 'forward', got {mode!r}")
        self.mode = mode

    def ambient_gradient(self, F, p: Tensor) -> Tensor:
        if self.mode == 'forward':
            grad = self._forward(F, p)
        else:
            grad = self._reverse(F, p)
        logger.debug("Autograd ambient gradient: mode=%s, shape=%s", self.mode, tuple(p.shape))
        return grad

    def _trace(self, F, x: Tensor) -> Tensor:
        """Evaluate F on a leaf that requires grad and check the output is attached to it."""
        try:
            with torch.enable_grad():
                value = F(x)
        except RuntimeError as exc:
            raise BackendCapabilityError(f"Autograd cannot trace the objective: {exc}") from exc

        if not isinstance(value, Tensor) or value.numel() != 1:
            raise BackendCapabilityError(
                f"Objective must return a one-element tensor for autograd, got {type(value).__name__}"
            )
        if not value.requires_grad:
            raise BackendCapabilityError("Objective output is not connected to its input in the autograd graph")
        return value

    def _reverse(self, F, p: Tensor) -> Tensor:
        x = p.detach().clone().requires_grad_(True)
        value = self._trace(F, x)
        try:
            (grad,) = torch.autograd.grad(value.reshape(()), x, allow_unused=True)
        except RuntimeError as exc:
            raise BackendCapabilityError(f"Autograd cannot differentiate the objective: {exc}") from exc
        if grad is None:
            raise BackendCapabilityError("Objective output is not connected to its input in the autograd graph")
        return grad.detach()

    def _forward(self, F, p: Tensor) -> Tensor:
        # jacfwd returns zeros for an output cut off from its input
        self._trace(F, p.detach().clone().requires_grad_(True))
        x = p.detach()
        try:
            jac = torch.func.jacfwd(F)(x)
        except RuntimeError as exc:
            raise BackendCapabilityError(f"Forward-mode AD cannot trace the objective: {exc}") from exc
        if not isinstance(jac, Tensor) or jac.numel() != x.numel():
            raise BackendCapabilityError("Objective must return a one-element tensor for forward-mode AD")
        return jac.reshape(x.shape).detach()

    def __repr__(self) -> str:
        return f"AutogradBackend(mode='{self.mode}')"
