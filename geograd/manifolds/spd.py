"""
SPD (Symmetric Positive Definite) Manifold.

The space of symmetric positive definite matrices with the affine-invariant
Riemannian metric.

Mathematical background:
- SPD(n) = {P ∈ ℝⁿˣⁿ : P = Pᵀ, P ≻ 0}
- Tangent space at P: T_P SPD = Sym(n) (all symmetric matrices)
- Affine-invariant metric: ⟨U, V⟩_P = tr(P⁻¹ U P⁻¹ V)
- Distance: d(P, Q) = ||log(P^{-1/2} Q P^{-1/2})||_F

The embedding into ℝⁿˣⁿ with the Frobenius inner product is not isometric.
A Euclidean gradient ξ (already symmetrized) represents the differential
through ⟨ξ, Y⟩_F = tr(ξ Y). The Riemannian representer Z must satisfy
tr(P⁻¹ Z P⁻¹ Y) = tr(ξ Y) for all symmetric Y, hence Z = P ξ P.
"""

from typing import Callable, Optional
import math
import torch
from torch import Tensor
from ..basis import TangentBasis
from ..manifold import Manifold


class SPD(Manifold):
    """
    Manifold of Symmetric Positive Definite matrices.

    Uses the affine-invariant Riemannian metric, which is invariant
    under congruence transformations: d(A P A^T, A Q A^T) = d(P, Q).

    Args:
        n: Size of matrices (n×n)
        eps: Eigenvalue floor used when projecting onto the manifold

    Example:
        >>> spd = SPD(3)
        >>> P = spd.random_point(dtype=torch.float64)
        >>> Q = spd.random_point(dtype=torch.float64)
        >>> V = spd.log(P, Q)       # Tangent vector from P to Q
        >>> Q_recovered = spd.exp(P, V)  # Recover Q
    """

    is_isometric = False

    def __init__(self, n: int, eps: float = 1e-6):
        if n < 1:
            raise ValueError(f"SPD requires n >= 1, got {n}")
        self.n = n
        self.eps = eps

    @property
    def dim(self) -> int:
        """Degrees of freedom of a symmetric n×n matrix."""
        return self.n * (self.n + 1) // 2

    def random_point(self, *batch_shape, generator: Optional[torch.Generator] = None,
                     dtype=None, device=None) -> Tensor:
        """
        Generate random SPD matrix via A @ A.T + I.

        Args:
            *batch_shape: Optional batch dimensions
            generator: Seeded random source

        Returns:
            Random SPD matrix(ces), shape (*batch_shape, n, n)
        """
        shape = (*batch_shape, self.n, self.n)
        A = torch.randn(shape, generator=generator, dtype=dtype, device=device)
        return A @ A.transpose(-2, -1) + torch.eye(self.n, dtype=A.dtype, device=A.device)

    def project(self, X: Tensor) -> Tensor:
        """
        Project matrix to nearest SPD matrix.

        Uses symmetric part and eigenvalue thresholding.
        """
        X_sym = 0.5 * (X + X.transpose(-2, -1))
        return self._eig_apply(X_sym, lambda w: w.clamp(min=self.eps))

    def project_tangent(self, P: Tensor, V: Tensor) -> Tensor:
        """
        Project to tangent space at P.

        Tangent space is all symmetric matrices, so we symmetrize. This is
        the Frobenius-orthogonal projection onto Sym(n).
        """
        return 0.5 * (V + V.transpose(-2, -1))

    def is_point(self, P: Tensor, atol: float = 1e-8) -> bool:
        if P.shape != (self.n, self.n):
            return False
        if (P - P.transpose(-2, -1)).abs().max().item() > atol:
            return False
        return bool((torch.linalg.eigvalsh(P) > 0).all())

    def inner(self, P: Tensor, U: Tensor, V: Tensor) -> Tensor:
        """
        Riemannian inner product: ⟨U, V⟩_P = tr(P⁻¹ U P⁻¹ V)
        """
        P_inv = torch.linalg.inv(P)
        return torch.einsum('ij,jk,kl,li->', P_inv, U, P_inv, V)

    def gram(self, P: Tensor, vectors: Tensor) -> Tensor:
        """Gram matrix via whitening: ⟨U, V⟩_P = ⟨P^{-1/2} U P^{-1/2}, P^{-1/2} V P^{-1/2}⟩_F."""
        P_invsqrt = self.invsqrtm(P)
        white = (P_invsqrt @ vectors @ P_invsqrt).reshape(vectors.shape[0], -1)
        return white @ white.T

    def change_representer(self, P: Tensor, V: Tensor) -> Tensor:
        """Frobenius representer V to affine-invariant representer P V P."""
        return P @ V @ P

    def orthonormal_basis(self, P: Tensor) -> TangentBasis:
        """
        Basis P^{1/2} E_k P^{1/2} for a Frobenius-orthonormal basis E_k of Sym(n).

        E_k runs over e_i e_iᵀ and (e_i e_jᵀ + e_j e_iᵀ)/√2 for i < j, in
        row-major order of the upper triangle.
        """
        n = self.n
        E = []
        for i in range(n):
            for j in range(i, n):
                B = torch.zeros(n, n, dtype=P.dtype, device=P.device)
                if i == j:
                    B[i, i] = 1.0
                else:
                    B[i, j] = B[j, i] = 1.0 / math.sqrt(2.0)
                E.append(B)
        P_sqrt = self.sqrtm(P)
        return TangentBasis(P, P_sqrt @ torch.stack(E) @ P_sqrt)

    def exp(self, P: Tensor, V: Tensor) -> Tensor:
        """
        Exponential map: exp_P(V) = P^{1/2} exp(P^{-1/2} V P^{-1/2}) P^{1/2}
        """
        P_sqrt = self.sqrtm(P)
        P_invsqrt = self.invsqrtm(P)

        # Transform V to identity
        V_0 = P_invsqrt @ V @ P_invsqrt

        # Exponential at identity is matrix exponential
        return P_sqrt @ self.expm(V_0) @ P_sqrt

    def log(self, P: Tensor, Q: Tensor) -> Tensor:
        """
        Logarithm map: log_P(Q) = P^{1/2} log(P^{-1/2} Q P^{-1/2}) P^{1/2}
        """
        P_sqrt = self.sqrtm(P)
        P_invsqrt = self.invsqrtm(P)
        return P_sqrt @ self.logm(P_invsqrt @ Q @ P_invsqrt) @ P_sqrt

    def distance(self, P: Tensor, Q: Tensor) -> Tensor:
        """
        Geodesic distance: d(P, Q) = ||log(P^{-1/2} Q P^{-1/2})||_F
        """
        P_invsqrt = self.invsqrtm(P)
        log_M = self.logm(P_invsqrt @ Q @ P_invsqrt)
        return torch.linalg.norm(log_M, ord='fro', dim=(-2, -1))

    # ==========================================================================
    # Matrix functions via eigendecomposition
    # ==========================================================================

    @staticmethod
    def _eig_apply(P: Tensor, fn: Callable[[Tensor], Tensor]) -> Tensor:
        eigenvalues, eigenvectors = torch.linalg.eigh(P)
        return eigenvectors @ torch.diag_embed(fn(eigenvalues)) @ eigenvectors.transpose(-2, -1)

    def sqrtm(self, P: Tensor) -> Tensor:
        """Matrix square root via eigendecomposition."""
        return self._eig_apply(P, torch.sqrt)

    def invsqrtm(self, P: Tensor) -> Tensor:
        """Inverse matrix square root."""
        return self._eig_apply(P, torch.rsqrt)

    def logm(self, P: Tensor) -> Tensor:
        """Matrix logarithm via eigendecomposition."""
        return self._eig_apply(P, torch.log)

    def expm(self, V: Tensor) -> Tensor:
        """Matrix exponential via eigendecomposition (for symmetric V)."""
        return self._eig_apply(V, torch.exp)

    def __repr__(self) -> str:
        return f"SPD({self.n})"
