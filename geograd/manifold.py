"""Base manifold class for GeoGrad."""

from abc import ABC, abstractmethod
from typing import Optional
import torch
from torch import Tensor

from .basis import TangentBasis
from .errors import PointNotOnManifoldError


class Manifold(ABC):
    """Abstract base class for Riemannian manifolds.

    This class defines the geometric primitives the gradient methods rely on:
    dimension, retraction, tangent projection, metric, orthonormal bases and
    the change of Riesz representer between the ambient inner product and
    the Riemannian metric.

    Points and tangent vectors are tensors in the ambient representation.
    """

    #: Whether the ambient inner product restricted to each tangent space
    #: equals the Riemannian metric. Non-isometric manifolds must override
    #: :meth:`change_representer`.
    is_isometric: bool = True

    @property
    @abstractmethod
    def dim(self) -> int:
        """Intrinsic dimension of the manifold.

        Returns:
            The intrinsic dimension (number of degrees of freedom).
        """
        pass

    @abstractmethod
    def exp(self, p: Tensor, v: Tensor) -> Tensor:
        """Exponential map: move from p along geodesic with velocity v.

        Args:
            p: Point on manifold
            v: Tangent vector at p

        Returns:
            Point on manifold after geodesic flow
        """
        pass

    @abstractmethod
    def log(self, p: Tensor, q: Tensor) -> Tensor:
        """Logarithmic map: tangent vector at p pointing toward q.

        Args:
            p: Base point on manifold
            q: Target point on manifold

        Returns:
            Tangent vector v such that exp(p, v) = q
        """
        pass

    @abstractmethod
    def distance(self, p: Tensor, q: Tensor) -> Tensor:
        """Geodesic distance between points."""
        pass

    @abstractmethod
    def project(self, x: Tensor) -> Tensor:
        """Project ambient space point onto manifold.

        Args:
            x: Point in ambient space

        Returns:
            Closest point on manifold
        """
        pass

    @abstractmethod
    def project_tangent(self, p: Tensor, v: Tensor) -> Tensor:
        """Project ambient vector onto tangent space at p.

        The projection is orthogonal with respect to the ambient inner
        product, which is what turns an ambient gradient into the Riesz
        representer of the restricted differential.

        Args:
            p: Point on manifold
            v: Vector in ambient space

        Returns:
            Component of v in T_pM
        """
        pass

    @abstractmethod
    def is_point(self, p: Tensor, atol: float = 1e-8) -> bool:
        """Check whether p satisfies the manifold constraints within atol."""
        pass

    def check_point(self, p: Tensor, atol: float = 1e-8) -> None:
        """Raise PointNotOnManifoldError if p is not on the manifold.

        Args:
            p: Candidate point
            atol: Absolute tolerance for the constraints
        """
        if not self.is_point(p, atol=atol):
            raise PointNotOnManifoldError(
                f"Point is not on {self!r} within tolerance {atol}"
            )

    def retract(self, p: Tensor, v: Tensor) -> Tensor:
        """Retraction R_p(v), a first-order approximation of exp_p(v).

        Defaults to the exponential map, which is itself a retraction.
        """
        return self.exp(p, v)

    def inner(self, p: Tensor, u: Tensor, v: Tensor) -> Tensor:
        """Riemannian inner product g_p(u, v).

        Defaults to the ambient Euclidean (Frobenius) inner product, which is
        correct for isometrically embedded manifolds.
        """
        return torch.sum(u * v)

    def norm(self, p: Tensor, v: Tensor) -> Tensor:
        """Riemannian norm of tangent vector v at point p.

        Computes ||v||_p = sqrt(g_p(v, v)).
        """
        return self.inner(p, v, v).clamp(min=0).sqrt()

    def gram(self, p: Tensor, vectors: Tensor) -> Tensor:
        """Gram matrix G_ij = g_p(v_i, v_j) of stacked tangent vectors.

        Args:
            p: Point on manifold
            vectors: Tangent vectors stacked along dimension 0

        Returns:
            Symmetric matrix of shape (k, k)
        """
        flat = vectors.reshape(vectors.shape[0], -1)
        if self.is_isometric:
            return flat @ flat.T
        k = vectors.shape[0]
        G = torch.empty(k, k, dtype=vectors.dtype, device=vectors.device)
        for i in range(k):
            for j in range(i, k):
                G[i, j] = G[j, i] = self.inner(p, vectors[i], vectors[j])
        return G

    def change_representer(self, p: Tensor, v: Tensor) -> Tensor:
        """Change the Riesz representer from the ambient metric to g_p.

        Returns the unique tangent vector z with
        g_p(z, y) = <v, y>_ambient for every tangent vector y.
        For isometric embeddings both inner products agree on T_pM and the
        map is the identity.

        Args:
            p: Point on manifold
            v: Tangent vector at p, representer w.r.t. the ambient metric

        Returns:
            Representer of the same functional w.r.t. the Riemannian metric
        """
        return v

    def orthonormal_basis(self, p: Tensor) -> TangentBasis:
        """Orthonormal basis of T_pM with respect to g_p.

        The default projects the canonical ambient basis onto the tangent
        space and runs Gram-Schmidt in the Riemannian metric, discarding
        directions that collapse under the projection.

        Args:
            p: Point on manifold

        Returns:
            TangentBasis with exactly ``self.dim`` vectors
        """
        eye = torch.eye(p.numel(), dtype=p.dtype, device=p.device)
        tol = 10 * p.numel() * torch.finfo(p.dtype).eps
        vectors = []
        for e in eye:
            w = self.project_tangent(p, e.reshape(p.shape))
            for b in vectors:
                w = w - self.inner(p, b, w) * b
            n = self.norm(p, w)
            if n > tol:
                vectors.append(w / n)
            if len(vectors) == self.dim:
                break
        return TangentBasis(p, torch.stack(vectors))

    def random_point(self, *shape, generator: Optional[torch.Generator] = None,
                     dtype=None, device=None) -> Tensor:
        """Generate random point(s) on manifold.

        Args:
            *shape: Shape of the output (batch dimensions)
            generator: Seeded random source
            dtype: PyTorch dtype
            device: PyTorch device

        Returns:
            Random point(s) on the manifold
        """
        raise NotImplementedError(f"{self.__class__.__name__} does not implement random_point")

    def random_tangent(self, p: Tensor, generator: Optional[torch.Generator] = None) -> Tensor:
        """Generate random tangent vector at p.

        Args:
            p: Base point on manifold
            generator: Seeded random source

        Returns:
            Random tangent vector at p
        """
        v = torch.randn(p.shape, generator=generator, dtype=p.dtype, device=p.device)
        return self.project_tangent(p, v)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
