"""Euclidean space manifold."""

from typing import Optional
import torch
from torch import Tensor
from ..basis import TangentBasis
from ..manifold import Manifold


class Euclidean(Manifold):
    """
    Euclidean space R^n with flat metric.

    This is the trivial manifold where:
    - exp_p(v) = p + v
    - log_p(q) = q - p
    - the Riemannian gradient is the ordinary gradient

    Useful as a baseline: both gradient methods must reproduce plain
    finite differences / autograd here.

    Args:
        n: Dimension of the space
    """

    def __init__(self, n: int):
        if n < 1:
            raise ValueError(f"Euclidean requires n >= 1, got {n}")
        self.n = n

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the manifold."""
        return self.n

    def exp(self, p: Tensor, v: Tensor) -> Tensor:
        """For Euclidean space, this is simply addition: exp_p(v) = p + v"""
        return p + v

    def log(self, p: Tensor, q: Tensor) -> Tensor:
        """For Euclidean space, this is simply subtraction: log_p(q) = q - p"""
        return q - p

    def distance(self, p: Tensor, q: Tensor) -> Tensor:
        return torch.linalg.norm(q - p, dim=-1)

    def project(self, x: Tensor) -> Tensor:
        return x

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """Tangent space is the entire space, so this is the identity."""
        return v

    def is_point(self, p: Tensor, atol: float = 1e-8) -> bool:
        return p.shape == (self.n,) and bool(torch.isfinite(p).all())

    def orthonormal_basis(self, p: Tensor) -> TangentBasis:
        """Canonical basis e_1, ..., e_n."""
        return TangentBasis(p, torch.eye(self.n, dtype=p.dtype, device=p.device))

    def random_point(self, *shape, generator: Optional[torch.Generator] = None,
                     dtype=None, device=None) -> Tensor:
        """
        Generate random point(s) on manifold.

        Samples from standard normal distribution.
        """
        return torch.randn(*shape, self.n, generator=generator, dtype=dtype, device=device)

    def __repr__(self) -> str:
        return f"Euclidean({self.n})"
