"""Random pixel-subsampling operator.

Implements the simplest compressive mask: each measurement is the value of
one pixel, chosen uniformly at random without replacement.

Input: 2D image (H, W)
Output: 1D measurements (M,) with M = round(sampling_rate * H * W)
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from sparsa_video.physics.base import BaseOperator


class SubsampleOperator(BaseOperator):
    """Forward: y = x.ravel()[idx].  Adjoint: zero-fill at idx."""

    def __init__(
        self,
        x_shape: Tuple[int, int] = (64, 64),
        sampling_rate: float = 0.4,
        seed: int = 0,
        operator_id: str = "subsample",
    ):
        N = int(np.prod(x_shape))
        n_measurements = max(1, int(round(N * sampling_rate)))
        super().__init__(operator_id, x_shape, (n_measurements,))
        self.sampling_rate = sampling_rate
        self.seed = seed

        rng = np.random.default_rng(seed)
        self.indices = np.sort(rng.choice(N, size=n_measurements, replace=False))

    @property
    def mask(self) -> np.ndarray:
        """Binary (H, W) mask of the sampled pixels."""
        m = np.zeros(int(np.prod(self.x_shape)), dtype=bool)
        m[self.indices] = True
        return m.reshape(self.x_shape)

    def forward(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(x).reshape(-1)[self.indices]

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        y = np.asarray(y).reshape(-1)
        x = np.zeros(int(np.prod(self.x_shape)), dtype=np.result_type(y, np.float64))
        x[self.indices] = y
        return x.reshape(self.x_shape)

    def info(self) -> Dict[str, Any]:
        info = super().info()
        info.update({"sampling_rate": self.sampling_rate, "seed": self.seed})
        return info
