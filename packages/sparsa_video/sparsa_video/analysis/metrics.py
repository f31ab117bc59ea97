"""sparsa_video.analysis.metrics

Metrics for recon quality when ground truth is available.
"""

from __future__ import annotations

import numpy as np


def mse(x: np.ndarray, y: np.ndarray) -> float:
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    return float(np.mean((x - y) ** 2))


def relative_mse(x: np.ndarray, ref: np.ndarray) -> float:
    """sum |x - ref|^2 / sum |ref|^2."""
    err = float(np.sum(np.abs(np.asarray(x) - np.asarray(ref)) ** 2))
    energy = float(np.sum(np.abs(np.asarray(ref)) ** 2))
    if energy <= 0:
        return 0.0 if err == 0 else float("inf")
    return err / energy


def psnr(x: np.ndarray, y: np.ndarray, data_range: float = 1.0) -> float:
    m = mse(x, y)
    if m <= 1e-12:
        return 99.0
    return float(20.0 * np.log10(data_range) - 10.0 * np.log10(m))
