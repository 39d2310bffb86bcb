"""Tests for Riemannian gradients obtained through the embedding."""

import numpy as np
import pytest
import torch
from geograd import (
    Euclidean, Sphere, Hyperbolic, SPD,
    EmbeddingGradientConverter, FiniteDifferenceBackend, AutogradBackend,
    TangentDiffBackend, gradient,
    ConfigurationError, PointNotOnManifoldError, BackendCapabilityError,
)


def spd_objective(q):
    """½ d(q, I)² through the eigenvalues of q."""
    return 0.5 * (torch.log(torch.linalg.eigvalsh(q)) ** 2).sum()


def spd_objective_numpy(q):
    """Same objective, evaluated outside torch."""
    return 0.5 * np.sum(np.log(np.linalg.eigvalsh(q.numpy())) ** 2)


class TestSphere:
    """Isometric embedding: projection is the whole conversion"""

    def test_rayleigh_autograd(self, rayleigh):
        M, A, p = rayleigh
        method = EmbeddingGradientConverter(AutogradBackend())
        X = gradient(M, lambda x: x @ A @ x, p, method)
        Ap = A @ p
        assert torch.allclose(X, 2.0 * (Ap - (p @ Ap) * p), atol=1e-10)

    def test_rayleigh_finite_differences(self, rayleigh):
        M, A, p = rayleigh
        method = EmbeddingGradientConverter(FiniteDifferenceBackend())
        X = gradient(M, lambda x: x @ A @ x, p, method)
        Ap = A @ p
        assert torch.linalg.norm(X - 2.0 * (Ap - (p @ Ap) * p)) < 1e-6

    def test_matches_intrinsic_method(self, rayleigh):
        M, A, p = rayleigh
        f = lambda x: x @ A @ x
        embedded = gradient(M, f, p, EmbeddingGradientConverter(AutogradBackend()))
        intrinsic = gradient(M, f, p, TangentDiffBackend(scheme='central'))
        assert torch.linalg.norm(embedded - intrinsic) < 1e-6

    def test_normal_component_removed(self, sphere, generator):
        p = sphere.random_point(generator=generator, dtype=torch.float64)
        # F grows only in the normal direction, so the gradient vanishes
        X = EmbeddingGradientConverter(AutogradBackend()).gradient(sphere, lambda x: (x @ x) ** 2, p)
        assert torch.allclose(X, torch.zeros_like(p), atol=1e-12)


class TestSPD:
    """Non-isometric embedding: Z = P ξ P"""

    def test_closed_form_autograd(self, spd, spd_point):
        """grad ½ d(q, I)² = -log_q(I)"""
        X = gradient(spd, spd_objective, spd_point, EmbeddingGradientConverter(AutogradBackend()))
        expected = -spd.log(spd_point, torch.eye(3, dtype=torch.float64))
        assert torch.allclose(X, expected, atol=2e-10, rtol=0)

    def test_closed_form_finite_differences(self, spd, spd_point):
        X = gradient(spd, spd_objective, spd_point, EmbeddingGradientConverter(FiniteDifferenceBackend()))
        expected = -spd.log(spd_point, torch.eye(3, dtype=torch.float64))
        assert torch.allclose(X, expected, atol=1e-7, rtol=0)

    def test_result_is_symmetric(self, spd, spd_point):
        X = gradient(spd, spd_objective, spd_point, EmbeddingGradientConverter(AutogradBackend()))
        assert torch.allclose(X, X.T, atol=1e-12)

    def test_repeated_calls_are_identical(self, spd, spd_point):
        method = EmbeddingGradientConverter(FiniteDifferenceBackend())
        first = gradient(spd, spd_objective, spd_point, method)
        second = gradient(spd, spd_objective, spd_point, method)
        assert torch.equal(first, second)

    def test_numpy_objective_fails_under_autograd(self, spd, spd_point):
        method = EmbeddingGradientConverter(AutogradBackend())
        with pytest.raises(BackendCapabilityError):
            gradient(spd, spd_objective_numpy, spd_point, method)

    def test_numpy_objective_under_finite_differences(self, spd, spd_point):
        method = EmbeddingGradientConverter(FiniteDifferenceBackend())
        X = gradient(spd, spd_objective_numpy, spd_point, method)
        expected = -spd.log(spd_point, torch.eye(3, dtype=torch.float64))
        assert torch.allclose(X, expected, atol=1e-7, rtol=0)

    def test_riesz_identity(self, spd, spd_point, generator):
        """g_q(grad f, Y) = DF(q)[Y] for symmetric Y"""
        xi = AutogradBackend().ambient_gradient(spd_objective, spd_point)
        X = EmbeddingGradientConverter(AutogradBackend()).convert(spd, spd_point, xi)
        for _ in range(3):
            Y = spd.random_tangent(spd_point, generator=generator)
            assert torch.allclose(spd.inner(spd_point, X, Y), torch.sum(xi * Y), atol=1e-12)

    def test_matches_intrinsic_method(self, spd, spd_point):
        embedded = gradient(spd, spd_objective, spd_point, EmbeddingGradientConverter(AutogradBackend()))
        intrinsic = gradient(spd, spd_objective, spd_point, TangentDiffBackend(scheme='central'))
        assert torch.allclose(embedded, intrinsic, atol=1e-7)


class TestHyperbolic:
    """Conformal embedding: Z = ξ / λ_p²"""

    def test_matches_intrinsic_method(self):
        H = Hyperbolic(3)
        p = torch.tensor([0.3, -0.2, 0.1], dtype=torch.float64)
        f = lambda x: torch.sin(x).sum() + x @ x
        embedded = gradient(H, f, p, EmbeddingGradientConverter(AutogradBackend()))
        intrinsic = gradient(H, f, p, TangentDiffBackend(scheme='central'))
        assert torch.allclose(embedded, intrinsic, atol=1e-8)

    def test_rescaled_euclidean_gradient(self):
        H = Hyperbolic(2)
        p = torch.tensor([0.5, 0.0], dtype=torch.float64)
        X = gradient(H, lambda x: x[0], p, EmbeddingGradientConverter(AutogradBackend()))
        lam = 2.0 / (1.0 - 0.25)
        assert torch.allclose(X, torch.tensor([1.0 / lam ** 2, 0.0], dtype=torch.float64))


class TestConverter:
    """Configuration and validation"""

    def test_euclidean_is_plain_gradient(self, generator):
        M = Euclidean(4)
        p = M.random_point(generator=generator, dtype=torch.float64)
        X = gradient(M, lambda x: (x ** 3).sum(), p, EmbeddingGradientConverter(AutogradBackend()))
        assert torch.allclose(X, 3 * p ** 2)

    def test_rejects_non_backend(self):
        with pytest.raises(ConfigurationError):
            EmbeddingGradientConverter(TangentDiffBackend())
        with pytest.raises(ConfigurationError):
            EmbeddingGradientConverter(lambda F, p: p)

    def test_rejects_bad_atol(self):
        with pytest.raises(ConfigurationError):
            EmbeddingGradientConverter(AutogradBackend(), atol=0)

    def test_point_check(self):
        S = Sphere(3)
        method = EmbeddingGradientConverter(AutogradBackend(), check_point=True)
        with pytest.raises(PointNotOnManifoldError):
            method.gradient(S, lambda x: x.sum(), torch.tensor([1.0, 1.0, 0.0], dtype=torch.float64))

    def test_point_check_is_opt_in(self):
        S = Sphere(3)
        method = EmbeddingGradientConverter(AutogradBackend())
        X = method.gradient(S, lambda x: x.sum(), torch.tensor([1.0, 1.0, 0.0], dtype=torch.float64))
        assert X.shape == (3,)

    def test_point_check_error_is_value_error(self, spd):
        method = EmbeddingGradientConverter(FiniteDifferenceBackend(), check_point=True)
        with pytest.raises(ValueError):
            method.gradient(spd, spd_objective, -torch.eye(3, dtype=torch.float64))

    def test_repr(self):
        method = EmbeddingGradientConverter(AutogradBackend())
        assert repr(method) == "EmbeddingGradientConverter(AutogradBackend(mode='reverse'))"
