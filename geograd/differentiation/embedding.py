"""Riemannian gradients from Euclidean gradients in the embedding.

Let F be a function on the ambient space whose restriction to M is f. The
differential of f at p is the differential of F restricted to T_pM, so

    ⟨Proj_{T_pM}(∇F(p)), Y⟩ = Df(p)[Y] = g_p(grad f(p), Y)   for all Y ∈ T_pM.

For an isometric embedding the projection already is the Riemannian gradient.
Otherwise the Riesz representer has to be changed from the ambient inner
product to g_p, which each manifold provides as ``change_representer``.
"""

from typing import Callable
import logging

from torch import Tensor

from ..errors import ConfigurationError
from .backends import AmbientGradientBackend
from .riemannian import RiemannianGradientBackend

logger = logging.getLogger(__name__)


class EmbeddingGradientConverter(RiemannianGradientBackend):
    """
    Riemannian gradient via an ambient gradient backend.

    Steps:
        1. g = backend.ambient_gradient(F, p)
        2. g = manifold.project_tangent(p, g)
        3. if the embedding is not isometric: g = manifold.change_representer(p, g)

    The converter does not care which backend computed the ambient gradient.
    With a FiniteDifferenceBackend, F is evaluated off the manifold and must
    be defined on an ambient neighbourhood of p.

    Args:
        backend: AmbientGradientBackend (FiniteDifferenceBackend or
            AutogradBackend)
        check_point: Verify that p lies on the manifold before differentiating
        atol: Tolerance for the point check

    Example:
        >>> N = SPD(3)
        >>> G = lambda q: 0.5 * (torch.log(torch.linalg.eigvalsh(q)) ** 2).sum()
        >>> method = EmbeddingGradientConverter(FiniteDifferenceBackend())
        >>> X = gradient(N, G, q, method)
    """

    def __init__(self, backend: AmbientGradientBackend, check_point: bool = False, atol: float = 1e-8):
        if not isinstance(backend, AmbientGradientBackend):
            raise ConfigurationError(
                f"Expected an AmbientGradientBackend, got {type(backend).__name__}"
            )
        if atol <= 0:
            raise ConfigurationError(f"Invalid atol value: {atol}")
        self.backend = backend
        self.check_point = check_point
        self.atol = atol

    def convert(self, manifold, p: Tensor, ambient_grad: Tensor) -> Tensor:
        """
        Turn a Euclidean gradient at p into the Riemannian gradient.

        Args:
            manifold: Manifold p lives on
            p: Point on the manifold
            ambient_grad: Euclidean gradient of an ambient extension at p

        Returns:
            Tangent vector at p
        """
        projected = manifold.project_tangent(p, ambient_grad)
        if manifold.is_isometric:
            return projected
        return manifold.change_representer(p, projected)

    def gradient(self, manifold, F: Callable[[Tensor], object], p: Tensor) -> Tensor:
        if self.check_point:
            manifold.check_point(p, atol=self.atol)
        ambient_grad = self.backend.ambient_gradient(F, p)
        logger.debug("Converting ambient gradient on %r (isometric=%s)", manifold, manifold.is_isometric)
        return self.convert(manifold, p, ambient_grad)

    def __repr__(self) -> str:
        return f"EmbeddingGradientConverter({self.backend!r})"
