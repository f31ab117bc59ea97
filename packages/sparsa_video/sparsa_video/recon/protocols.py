"""sparsa_video.recon.protocols
==============================

Structural interfaces consumed by the reconstruction code.

Measurement functions and sparsity transforms are supplied by the caller;
anything with the right methods works, including the concrete operators in
``sparsa_video.physics`` and ``sparsa_video.transforms``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class LinearLikeOperator(Protocol):
    """A measurement function: image -> measurement and its adjoint."""

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Apply the forward model: y = A(x)."""
        ...

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        """Apply the adjoint: x = A^T(y)."""
        ...


@runtime_checkable
class SparsityTransform(Protocol):
    """A sparsity basis: image -> coefficient vector and back."""

    def apply(self, image: np.ndarray) -> np.ndarray:
        ...

    def invert(self, coeffs: np.ndarray) -> np.ndarray:
        ...
