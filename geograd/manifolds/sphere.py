"""Sphere manifold."""

from typing import Optional
import torch
from torch import Tensor
from ..basis import TangentBasis
from ..manifold import Manifold


class Sphere(Manifold):
    """Unit sphere S^{n-1} embedded in ℝⁿ.

    The sphere consists of all points x in ℝⁿ such that ||x|| = 1.
    Note: Sphere(n) creates the (n-1)-dimensional sphere S^{n-1} embedded in ℝⁿ.

    The embedding is isometric: the metric is the restriction of the
    Euclidean inner product, so the Riemannian gradient of a function is
    the tangent projection of the Euclidean gradient of any extension.

    Args:
        n: Ambient dimension (creates S^{n-1} sphere)

    Examples:
        >>> S = Sphere(3)  # Creates S^2 (2-sphere) in R^3
        >>> p = S.random_point(dtype=torch.float64)
        >>> S.is_point(p)
        True
    """

    def __init__(self, n: int):
        if n < 2:
            raise ValueError(f"Sphere requires n >= 2, got {n}")
        self._ambient_dim = n
        self._dim = n - 1
        self._eps = 1e-7  # For numerical stability

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the sphere (n-1 for S^{n-1})."""
        return self._dim

    def exp(self, p: Tensor, v: Tensor) -> Tensor:
        """Exponential map on the sphere.

        Uses the closed-form formula:
            exp_p(v) = cos(||v||) * p + sin(||v||) / ||v|| * v

        sin(t)/t is evaluated as 1 at t = 0 so that arbitrarily small
        finite-difference steps are not clamped away.

        Args:
            p: Point on sphere (unit vector)
            v: Tangent vector at p (orthogonal to p)

        Returns:
            Point on sphere after moving along geodesic
        """
        norm_v = torch.linalg.norm(v, dim=-1, keepdim=True)
        safe_norm = torch.where(norm_v > 0, norm_v, torch.ones_like(norm_v))
        sinc = torch.where(norm_v > 0, torch.sin(safe_norm) / safe_norm, torch.ones_like(norm_v))

        result = torch.cos(norm_v) * p + sinc * v

        # Ensure result is on sphere (numerical stability)
        return result / torch.linalg.norm(result, dim=-1, keepdim=True)

    def log(self, p: Tensor, q: Tensor) -> Tensor:
        """Logarithmic map on the sphere.

        Uses the closed-form formula:
            log_p(q) = θ * (q - cos(θ)*p) / sin(θ)
        where θ = arccos(clamp(p·q, -1, 1))
        """
        dot_pq = torch.sum(p * q, dim=-1, keepdim=True)
        dot_pq = torch.clamp(dot_pq, -1.0 + self._eps, 1.0 - self._eps)
        theta = torch.acos(dot_pq)

        # Handle case where p ≈ q (theta ≈ 0)
        sin_theta = torch.clamp(torch.sin(theta), min=self._eps)

        return theta / sin_theta * (q - dot_pq * p)

    def distance(self, p: Tensor, q: Tensor) -> Tensor:
        """Geodesic distance: the angle arccos(p·q) between the unit vectors."""
        dot_pq = torch.sum(p * q, dim=-1)
        dot_pq = torch.clamp(dot_pq, -1.0, 1.0)
        return torch.acos(dot_pq)

    def project(self, x: Tensor) -> Tensor:
        """Project point onto sphere by normalization."""
        norm_x = torch.linalg.norm(x, dim=-1, keepdim=True)
        norm_x = torch.clamp(norm_x, min=self._eps)
        return x / norm_x

    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """Project vector onto tangent space at p.

        The tangent space at p consists of all vectors orthogonal to p:
            proj_TpS(v) = v - (v·p) * p
        """
        dot_vp = torch.sum(v * p, dim=-1, keepdim=True)
        return v - dot_vp * p

    def is_point(self, p: Tensor, atol: float = 1e-8) -> bool:
        if p.shape != (self._ambient_dim,):
            return False
        return abs(torch.linalg.norm(p).item() - 1.0) <= atol

    def orthonormal_basis(self, p: Tensor) -> TangentBasis:
        """Orthonormal basis of T_pS from a Householder reflector.

        With s = sign(p_1) and u = (p + s e_1) / ||p + s e_1||, the reflector
        H = I - 2uu^T maps e_1 to -s p, so its remaining columns H e_2, ..., H e_n
        are orthonormal and orthogonal to p.
        """
        n = self._ambient_dim
        s = 1.0 if p[0] >= 0 else -1.0
        u = p.clone()
        u[0] = u[0] + s
        u = u / torch.linalg.norm(u)
        H = torch.eye(n, dtype=p.dtype, device=p.device) - 2.0 * torch.outer(u, u)
        return TangentBasis(p, H[1:])

    def random_point(self, *shape, generator: Optional[torch.Generator] = None,
                     dtype=None, device=None) -> Tensor:
        """Generate random point(s) uniformly on the sphere.

        Uses the standard method of normalizing Gaussian random vectors.
        """
        full_shape = shape + (self._ambient_dim,)
        x = torch.randn(full_shape, generator=generator, dtype=dtype, device=device)
        return self.project(x)

    def __repr__(self) -> str:
        return f"Sphere({self._ambient_dim})"
