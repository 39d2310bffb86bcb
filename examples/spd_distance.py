"""
Squared Distance on SPD Matrices
================================

Problem: gradient of half the squared affine-invariant distance to the identity

    G(q) = ½ d(q, I)² = ½ Σ_i log(λ_i(q))²

at q = R(π/6) diag(1, 2, 3) R(π/6)ᵀ. The closed form is grad G(q) = -log_q(I).

The embedding of SPD(3) into ℝ³ˣ³ is not isometric: the Euclidean gradient ξ
of G has to be projected onto the symmetric matrices and then turned into the
affine-invariant representer q ξ q.

The eigenvalues are first computed with numpy. Autograd cannot see through
numpy, and the failure is reported instead of silently replaced by numerical
differencing.
"""

import logging
import math
import numpy as np
import torch
from geograd import (
    SPD,
    gradient,
    EmbeddingGradientConverter,
    AutogradBackend,
    FiniteDifferenceBackend,
    TangentDiffBackend,
    BackendCapabilityError,
)


def rotation(alpha):
    c, s = math.cos(alpha), math.sin(alpha)
    return torch.tensor([[1.0, 0.0, 0.0], [0.0, c, s], [0.0, -s, c]], dtype=torch.float64)


def G_numpy(q):
    return 0.5 * np.sum(np.log(np.linalg.eigvalsh(q.numpy())) ** 2)


def G_torch(q):
    return 0.5 * (torch.log(torch.linalg.eigvalsh(q)) ** 2).sum()


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    N = SPD(3)
    R = rotation(math.pi / 6)
    q = R @ torch.diag(torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)) @ R.T
    X_exact = -N.log(q, torch.eye(3, dtype=torch.float64))

    print("=" * 60)
    print("½ d(q, I)² on SPD(3)")
    print("=" * 60)

    # Finite differences handle the numpy eigen-solver
    X = gradient(N, G_numpy, q, EmbeddingGradientConverter(FiniteDifferenceBackend()))
    print(f"\nFinite differences (numpy G):  error {torch.linalg.norm(X - X_exact).item():.3e}")

    # Autograd cannot trace numpy
    try:
        gradient(N, G_numpy, q, EmbeddingGradientConverter(AutogradBackend()))
    except BackendCapabilityError as exc:
        print(f"Autograd (numpy G):            {type(exc).__name__}")

    # Same objective written with torch operations
    X = gradient(N, G_torch, q, EmbeddingGradientConverter(AutogradBackend()))
    print(f"Autograd (torch G):            error {torch.linalg.norm(X - X_exact).item():.3e}")

    # Intrinsic differences never leave the manifold
    X = gradient(N, G_numpy, q, TangentDiffBackend(scheme='central'))
    print(f"Intrinsic central differences: error {torch.linalg.norm(X - X_exact).item():.3e}")


if __name__ == '__main__':
    main()
