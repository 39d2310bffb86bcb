"""Riemannian gradient methods and the ``gradient`` entry point."""

from abc import ABC, abstractmethod
from typing import Callable
import logging

from torch import Tensor

logger = logging.getLogger(__name__)


class RiemannianGradientBackend(ABC):
    """
    A way of computing Riemannian gradients without a closed form.

    Implementations:
        - TangentDiffBackend: intrinsic finite differences along an
          orthonormal tangent basis
        - EmbeddingGradientConverter: Euclidean gradient in the embedding,
          projected and converted to the Riemannian metric
    """

    @abstractmethod
    def gradient(self, manifold, f: Callable[[Tensor], object], p: Tensor) -> Tensor:
        """
        Riemannian gradient of f at p.

        Args:
            manifold: Manifold p lives on
            f: Scalar function (on the manifold, or on the ambient space for
               embedding-based methods)
            p: Point on the manifold

        Returns:
            Tangent vector at p, the Riesz representer of Df(p) under the
            manifold's metric
        """
        pass


def gradient(manifold, f: Callable[[Tensor], object], p: Tensor,
             method: RiemannianGradientBackend) -> Tensor:
    """
    Riemannian gradient of f at p using an explicitly chosen method.

    Args:
        manifold: Manifold p lives on
        f: Scalar objective
        p: Point on the manifold
        method: TangentDiffBackend or EmbeddingGradientConverter

    Returns:
        Tangent vector at p

    Example:
        >>> S = Sphere(3)
        >>> p = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
        >>> A = torch.diag(torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64))
        >>> f = lambda x: x @ A @ x
        >>> X = gradient(S, f, p, EmbeddingGradientConverter(AutogradBackend()))
    """
    logger.debug("Computing gradient on %r with %r", manifold, method)
    return method.gradient(manifold, f, p)
