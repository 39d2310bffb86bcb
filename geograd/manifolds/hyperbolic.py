"""Hyperbolic space in the Poincaré ball model."""

from typing import Optional
import torch
from torch import Tensor
from ..manifold import Manifold


class Hyperbolic(Manifold):
    """
    Hyperbolic space H^n as the Poincaré ball (open unit ball in R^n).

    The metric is conformal to the Euclidean one:
        g_p(u, v) = λ_p² ⟨u, v⟩,   λ_p = 2 / (1 - ||p||²)

    so the embedding into R^n is not isometric and Euclidean gradients must
    be rescaled by 1/λ_p² to become Riemannian gradients.

    Example:
        >>> H = Hyperbolic(5)
        >>> p = H.random_point(dtype=torch.float64)
        >>> bool(torch.norm(p) < 1)
        True
        >>> H.dim
        5

    Poincaré ball formulas (curvature c = -1):
        - Uses Möbius addition for exp/log
        - distance(p, q) = arcosh(1 + 2||p-q||² / ((1-||p||²)(1-||q||²)))

    Args:
        n: Dimension of the ball
    """

    is_isometric = False

    def __init__(self, n: int):
        if n < 1:
            raise ValueError(f"Hyperbolic requires n >= 1, got {n}")
        self.n = n
        self.eps = 1e-7

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the manifold."""
        return self.n

    def _lambda_x(self, x: Tensor) -> Tensor:
        """Conformal factor for Poincaré ball."""
        x_sqnorm = torch.sum(x * x, dim=-1, keepdim=True)
        return 2.0 / (1.0 - x_sqnorm).clamp(min=self.eps)

    def _mobius_add(self, x: Tensor, y: Tensor) -> Tensor:
        """Möbius addition in Poincaré ball."""
        x_sqnorm = torch.sum(x * x, dim=-1, keepdim=True)
        y_sqnorm = torch.sum(y * y, dim=-1, keepdim=True)
        xy_dot = torch.sum(x * y, dim=-1, keepdim=True)

        numerator = (1.0 + 2.0 * xy_dot + y_sqnorm) * x + (1.0 - x_sqnorm) * y
        denominator = (1.0 + 2.0 * xy_dot + x_sqnorm * y_sqnorm).clamp(min=self.eps)

        return numerator / denominator

    def exp(self, p: Tensor, v: Tensor) -> Tensor:
        """
        Exponential map: exp_p(v) = p ⊕ (tanh(λ_p||v||/2) * v / ||v||)

        where ⊕ is Möbius addition and λ_p is the conformal factor.
        """
        v_norm = torch.linalg.norm(v, dim=-1, keepdim=True)
        safe_norm = torch.where(v_norm > 0, v_norm, torch.ones_like(v_norm))

        lambda_p = self._lambda_x(p)
        scaled_norm = torch.tanh(lambda_p * v_norm / 2.0)

        direction = torch.where(v_norm > 0, scaled_norm * v / safe_norm, torch.zeros_like(v))
        return self._mobius_add(p, direction)

    def log(self, p: Tensor, q: Tensor) -> Tensor:
        """
        Logarithmic map:
            log_p(q) = (2/λ_p) * arctanh(||(-p) ⊕ q||) * ((-p) ⊕ q) / ||(-p) ⊕ q||
        """
        diff = self._mobius_add(-p, q)
        diff_norm = torch.linalg.norm(diff, dim=-1, keepdim=True)

        # Handle same point
        if (diff_norm < self.eps).all():
            return torch.zeros_like(p)

        lambda_p = self._lambda_x(p)
        arctanh_norm = torch.arctanh(torch.clamp(diff_norm, max=1.0 - self.eps))

        return (2.0 / lambda_p) * arctanh_norm * diff / diff_norm.clamp(min=self.eps)

    def distance(self, p: Tensor, q: Tensor) -> Tensor:
        """distance(p, q) = arcosh(1 + 2||p-q||² / ((1-||p||²)(1-||q||²)))"""
        diff_sqnorm = torch.sum((p - q) ** 2, dim=-1)
        p_sqnorm = torch.sum(p * p, dim=-1)
        q_sqnorm = torch.sum(q * q, dim=-1)

        denominator = ((1.0 - p_sqnorm) * (1.0 - q_sqnorm)).clamp(min=self.eps)

        # arcosh argument must be >= 1
        arcosh_arg = torch.clamp(1.0 + 2.0 * diff_sqnorm / denominator, min=1.0)
        return torch.acosh(arcosh_arg)

    def project(self, x: Tensor) -> Tensor:
        """Project ambient space point to inside the unit ball."""
        x_norm = torch.linalg.norm(x, dim=-1, keepdim=True)

        max_norm = 1.0 - self.eps
        scale = torch.where(
            x_norm < max_norm,
            torch.ones_like(x_norm),
            max_norm / x_norm.clamp(min=self.eps)
        )
        return scale * x

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """In Poincaré ball, tangent space is all of R^n."""
        return v

    def is_point(self, p: Tensor, atol: float = 1e-8) -> bool:
        if p.shape != (self.n,):
            return False
        return torch.linalg.norm(p).item() < 1.0

    def inner(self, p: Tensor, u: Tensor, v: Tensor) -> Tensor:
        """g_p(u, v) = λ_p² ⟨u, v⟩"""
        return self._lambda_x(p).squeeze(-1) ** 2 * torch.sum(u * v, dim=-1)

    def change_representer(self, p: Tensor, v: Tensor) -> Tensor:
        """Euclidean representer v to Riemannian representer v / λ_p²."""
        return v / self._lambda_x(p) ** 2

    def random_point(self, *shape, generator: Optional[torch.Generator] = None,
                     dtype=None, device=None) -> Tensor:
        """
        Generate random point(s) on manifold.

        Samples uniformly from the Poincaré ball.
        """
        x = torch.randn(*shape, self.n, generator=generator, dtype=dtype, device=device)
        x_norm = torch.linalg.norm(x, dim=-1, keepdim=True)

        # Sample radius uniformly in [0, 1)
        radius = torch.rand(*shape, 1, generator=generator, dtype=dtype, device=device)
        radius = torch.pow(radius, 1.0 / self.n)  # Correct for volume in n dimensions
        radius = radius * (1.0 - self.eps)  # Stay away from boundary

        return radius * x / x_norm.clamp(min=self.eps)

    def __repr__(self) -> str:
        return f"Hyperbolic({self.n})"
