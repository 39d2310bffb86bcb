"""Tests for manifold implementations."""

import pytest
import torch
from geograd import Sphere, Hyperbolic, Euclidean, SPD, TangentBasis
from geograd import PointNotOnManifoldError, InvalidBasisError, BasePointMismatchError


class TestManifoldProperties:
    """Property tests that should hold for all manifolds."""

    def test_random_point_on_manifold(self, manifold, point):
        """Random points satisfy manifold constraints"""
        assert manifold.is_point(point)

    def test_exp_at_zero_is_identity(self, manifold, point):
        """exp_p(0) = p"""
        result = manifold.exp(point, torch.zeros_like(point))
        assert torch.allclose(result, point, atol=1e-12)

    def test_log_exp_inverse(self, manifold, point, generator):
        """log_p(exp_p(v)) = v for small v"""
        v = 0.1 * manifold.random_tangent(point, generator=generator)
        q = manifold.exp(point, v)
        assert torch.allclose(manifold.log(point, q), v, atol=1e-6)

    def test_distance_equals_log_norm(self, manifold, point, generator):
        """d(p, q) = ||log_p(q)||_p"""
        v = 0.3 * manifold.random_tangent(point, generator=generator)
        q = manifold.exp(point, v)
        dist = manifold.distance(point, q)
        assert torch.allclose(dist, manifold.norm(point, v), atol=1e-6)

    def test_projection_is_idempotent(self, manifold, point, generator):
        """Proj(Proj(v)) = Proj(v)"""
        v = torch.randn(point.shape, generator=generator, dtype=point.dtype)
        once = manifold.project_tangent(point, v)
        assert torch.allclose(manifold.project_tangent(point, once), once, atol=1e-12)

    def test_basis_is_orthonormal(self, manifold, point):
        """Basis has dim vectors with identity Gram matrix"""
        basis = manifold.orthonormal_basis(point)
        assert len(basis) == manifold.dim
        basis.validate(manifold, atol=1e-10)

    def test_basis_vectors_are_tangent(self, manifold, point):
        """Basis vectors are fixed by the tangent projection"""
        basis = manifold.orthonormal_basis(point)
        for X in basis:
            assert torch.allclose(manifold.project_tangent(point, X), X, atol=1e-12)

    def test_gram_matches_inner(self, manifold, point, generator):
        """gram() agrees with pairwise inner products"""
        vectors = torch.stack([manifold.random_tangent(point, generator=generator) for _ in range(3)])
        G = manifold.gram(point, vectors)
        for i in range(3):
            for j in range(3):
                assert torch.allclose(G[i, j], manifold.inner(point, vectors[i], vectors[j]), atol=1e-10)

    def test_change_representer_riesz_identity(self, manifold, point, generator):
        """g_p(change_representer(Proj v), Y) = ⟨v, Y⟩ for tangent Y"""
        v = torch.randn(point.shape, generator=generator, dtype=point.dtype)
        Z = manifold.change_representer(point, manifold.project_tangent(point, v))
        for _ in range(3):
            Y = manifold.random_tangent(point, generator=generator)
            assert torch.allclose(manifold.inner(point, Z, Y), torch.sum(v * Y), atol=1e-10)


class TestIsometricEmbeddings:
    """change_representer is the identity on isometric embeddings"""

    @pytest.mark.parametrize('M', [Euclidean(5), Sphere(5)])
    def test_change_representer_is_noop(self, M, generator):
        p = M.random_point(generator=generator, dtype=torch.float64)
        proj = M.project_tangent(p, torch.randn(5, generator=generator, dtype=torch.float64))
        assert M.is_isometric
        assert torch.equal(M.change_representer(p, proj), proj)

    @pytest.mark.parametrize('M', [Hyperbolic(3), SPD(3)])
    def test_non_isometric_flag(self, M):
        assert not M.is_isometric


class TestSphereSpecific:
    """Sphere-specific tests"""

    def test_intrinsic_dimension(self):
        S = Sphere(64)
        assert S.dim == 63  # S^{n-1} has dimension n-1

    def test_exp_handles_tiny_steps(self):
        """exp is not clamped for steps far below the stability epsilon"""
        S = Sphere(3)
        p = torch.tensor([1.0, 0.0, 0.0], dtype=torch.float64)
        v = torch.tensor([0.0, 1e-9, 0.0], dtype=torch.float64)
        assert torch.allclose(S.exp(p, v)[1], torch.tensor(1e-9, dtype=torch.float64), rtol=1e-12, atol=0)

    @pytest.mark.parametrize('first', [1.0, -1.0, 0.0])
    def test_householder_basis_orthogonal_to_point(self, first):
        S = Sphere(4)
        p = S.project(torch.tensor([first, 0.5, -0.2, 0.1], dtype=torch.float64))
        basis = S.orthonormal_basis(p)
        assert torch.allclose(basis.vectors @ p, torch.zeros(3, dtype=torch.float64), atol=1e-14)

    def test_check_point_rejects_scaled_point(self):
        S = Sphere(4)
        p = torch.tensor([2.0, 0.0, 0.0, 0.0], dtype=torch.float64)
        assert not S.is_point(p)
        with pytest.raises(PointNotOnManifoldError):
            S.check_point(p)


class TestSPDSpecific:
    """SPD-specific tests"""

    def test_dimension(self):
        assert SPD(3).dim == 6

    def test_change_representer_is_congruence(self, spd, spd_point):
        V = torch.eye(3, dtype=torch.float64)
        assert torch.allclose(spd.change_representer(spd_point, V), spd_point @ spd_point)

    def test_non_symmetric_is_not_point(self, spd):
        X = torch.tensor([[2.0, 1.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 2.0]], dtype=torch.float64)
        with pytest.raises(PointNotOnManifoldError):
            spd.check_point(X)

    def test_indefinite_is_not_point(self, spd):
        X = torch.diag(torch.tensor([1.0, -1.0, 2.0], dtype=torch.float64))
        assert not spd.is_point(X)

    def test_distance_to_identity(self, spd, spd_point):
        """d(q, I)² = Σ log(λ_i)²"""
        I = torch.eye(3, dtype=torch.float64)
        expected = torch.log(torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)).pow(2).sum()
        assert torch.allclose(spd.distance(spd_point, I) ** 2, expected, atol=1e-12)


class TestHyperbolicSpecific:
    """Hyperbolic-specific tests"""

    def test_points_inside_ball(self, generator):
        H = Hyperbolic(4)
        p = H.random_point(generator=generator, dtype=torch.float64)
        assert torch.norm(p) < 1.0

    def test_intrinsic_dimension(self):
        assert Hyperbolic(4).dim == 4

    def test_default_basis_is_rescaled_canonical(self):
        """Gram-Schmidt in the conformal metric gives e_i / λ_p"""
        H = Hyperbolic(3)
        p = torch.tensor([0.3, -0.2, 0.1], dtype=torch.float64)
        lam = 2.0 / (1.0 - p.dot(p))
        basis = H.orthonormal_basis(p)
        assert torch.allclose(basis.vectors, torch.eye(3, dtype=torch.float64) / lam, atol=1e-14)

    def test_outside_ball_is_not_point(self):
        H = Hyperbolic(2)
        assert not H.is_point(torch.tensor([0.8, 0.8], dtype=torch.float64))


class TestTangentBasis:
    """Validation of tangent bases"""

    def test_scaled_basis_rejected(self, sphere, generator):
        p = sphere.random_point(generator=generator, dtype=torch.float64)
        basis = sphere.orthonormal_basis(p)
        with pytest.raises(InvalidBasisError):
            TangentBasis(p, 2.0 * basis.vectors).validate(sphere)

    def test_short_basis_rejected(self, sphere, generator):
        p = sphere.random_point(generator=generator, dtype=torch.float64)
        basis = sphere.orthonormal_basis(p)
        with pytest.raises(InvalidBasisError):
            TangentBasis(p, basis.vectors[:-1]).validate(sphere)

    def test_wrong_shape_rejected(self, sphere, generator):
        p = sphere.random_point(generator=generator, dtype=torch.float64)
        with pytest.raises(InvalidBasisError):
            TangentBasis(p, torch.eye(7, 9, dtype=torch.float64)).validate(sphere)

    def test_base_point_mismatch(self, sphere, generator):
        p = sphere.random_point(generator=generator, dtype=torch.float64)
        q = sphere.random_point(generator=generator, dtype=torch.float64)
        with pytest.raises(BasePointMismatchError):
            sphere.orthonormal_basis(p).check_point(q)

    def test_affine_invariant_basis_is_not_frobenius_orthonormal(self, spd, spd_point):
        """Orthonormality is w.r.t. the Riemannian metric, not the ambient one"""
        basis = spd.orthonormal_basis(spd_point)
        basis.validate(spd)
        flat = basis.vectors.reshape(len(basis), -1)
        assert not torch.allclose(flat @ flat.T, torch.eye(6, dtype=torch.float64), atol=1e-3)
