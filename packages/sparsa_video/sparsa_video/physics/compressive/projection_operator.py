"""Dense random-projection operator (single-pixel camera style).

Implements compressed sensing measurements: y = A x.ravel() where the rows
of A are random Gaussian or +/-1 (Bernoulli) patterns.
Output is 1D measurements from 2D input.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from sparsa_video.physics.base import BaseOperator

_ENSEMBLES = ("gaussian", "bernoulli")


class ProjectionOperator(BaseOperator):
    """Random projection operator.

    Forward: y = A @ x.flatten()  (2D -> 1D)
    Adjoint: x = A.T @ y reshaped to 2D

    Rows are scaled by 1/sqrt(M) so that columns have unit expected norm.
    """

    def __init__(
        self,
        x_shape: Tuple[int, int] = (64, 64),
        sampling_rate: float = 0.4,
        seed: int = 0,
        ensemble: str = "gaussian",
        operator_id: str = "projection",
    ):
        if ensemble not in _ENSEMBLES:
            raise ValueError(f"Unknown ensemble '{ensemble}', expected one of {_ENSEMBLES}")
        N = int(np.prod(x_shape))
        n_measurements = max(1, int(round(N * sampling_rate)))
        super().__init__(operator_id, x_shape, (n_measurements,))
        self.sampling_rate = sampling_rate
        self.seed = seed
        self.ensemble = ensemble

        rng = np.random.default_rng(seed)
        if ensemble == "gaussian":
            self.A = rng.standard_normal((n_measurements, N))
        else:
            self.A = (rng.random((n_measurements, N)) > 0.5).astype(np.float64) * 2 - 1
        self.A /= np.sqrt(n_measurements)

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Apply measurement: y = A @ x.flatten()"""
        return self.A @ np.asarray(x).reshape(-1)

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        """Apply adjoint: x = A.T @ y reshaped"""
        x_flat = self.A.T @ np.asarray(y).reshape(-1)
        return x_flat.reshape(self.x_shape)

    def info(self) -> Dict[str, Any]:
        info = super().info()
        info.update({
            "sampling_rate": self.sampling_rate,
            "ensemble": self.ensemble,
            "seed": self.seed,
        })
        return info
