"""Shared pytest fixtures for sparsa_video tests."""

from __future__ import annotations

import numpy as np
import pytest

from sparsa_video.physics.adapters import MatrixOperator
from sparsa_video.transforms import IdentityTransform, WaveletTransform


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def sparse_problem():
    """Gaussian 64x128 system with a 5-sparse ground truth."""
    rng = np.random.default_rng(7)
    M, N, k = 64, 128, 5
    A = rng.standard_normal((M, N)) / np.sqrt(M)
    x0 = np.zeros(N)
    support = rng.choice(N, size=k, replace=False)
    x0[support] = rng.choice([-1.0, 1.0], size=k) * rng.uniform(1.0, 2.0, size=k)
    return A, x0, A @ x0


@pytest.fixture
def well_conditioned_operator():
    """Square, invertible 8x8-image operator with singular values in [0.5, 1]."""
    rng = np.random.default_rng(3)
    N = 64
    Q1, _ = np.linalg.qr(rng.standard_normal((N, N)))
    Q2, _ = np.linalg.qr(rng.standard_normal((N, N)))
    s = np.linspace(0.5, 1.0, N)
    return MatrixOperator((Q1 * s) @ Q2.T, x_shape=(8, 8))


@pytest.fixture
def pixel_basis():
    return IdentityTransform((8, 8))


@pytest.fixture
def haar16():
    return WaveletTransform((16, 16), wavelet="haar")
