"""Orthonormal tangent bases."""

from dataclasses import dataclass
import torch
from torch import Tensor

from .errors import BasePointMismatchError, InvalidBasisError


@dataclass(frozen=True)
class TangentBasis:
    """
    Ordered orthonormal basis of the tangent space T_pM.

    The vectors are stacked along the first dimension, so ``vectors[i]`` has
    the same shape as ``point``. Orthonormality is with respect to the
    manifold's Riemannian metric at ``point``, not the ambient one.

    Example:
        >>> S = Sphere(3)
        >>> p = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
        >>> basis = S.orthonormal_basis(p)
        >>> len(basis)
        2
    """
    point: Tensor
    vectors: Tensor

    def __len__(self) -> int:
        return self.vectors.shape[0]

    def __iter__(self):
        return iter(self.vectors)

    def __getitem__(self, i: int) -> Tensor:
        return self.vectors[i]

    def validate(self, manifold, atol: float = 1e-8) -> None:
        """
        Check that the basis spans T_pM orthonormally.

        Args:
            manifold: Manifold the basis belongs to
            atol: Tolerance on the deviation of the Gram matrix from identity

        Raises:
            InvalidBasisError: Wrong number of vectors, wrong shape, or Gram
                matrix farther than atol from the identity
        """
        if self.vectors.shape[1:] != self.point.shape:
            raise InvalidBasisError(
                f"Basis vectors have shape {tuple(self.vectors.shape[1:])}, "
                f"expected {tuple(self.point.shape)}"
            )
        if len(self) != manifold.dim:
            raise InvalidBasisError(
                f"Basis has {len(self)} vectors, manifold dimension is {manifold.dim}"
            )
        G = manifold.gram(self.point, self.vectors)
        eye = torch.eye(len(self), dtype=G.dtype, device=G.device)
        deviation = (G - eye).abs().max().item()
        if deviation > atol:
            raise InvalidBasisError(
                f"Basis is not orthonormal: max |G - I| = {deviation:.3e} > {atol}"
            )

    def check_point(self, p: Tensor) -> None:
        """Raise BasePointMismatchError unless the basis is attached to p."""
        if self.point.shape != p.shape or not torch.equal(self.point, p):
            raise BasePointMismatchError("Basis is attached to a different base point")
