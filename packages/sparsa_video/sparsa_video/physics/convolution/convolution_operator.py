"""Circular convolution with a known point-spread function.

Forward: y = (psf * x).ravel(), periodic boundaries, computed with FFTs
Adjoint: correlation with the same psf (conjugate transfer function)

The psf is given centred; it is zero-padded to the image size and rolled so
its centre sits at pixel (0, 0), so a delta psf is the identity.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import numpy as np

from sparsa_video.physics.base import BaseOperator


def gaussian_psf(sigma: float, radius: int = 0) -> np.ndarray:
    """Normalized (2r+1, 2r+1) Gaussian kernel; radius defaults to ceil(3 sigma)."""
    r = radius or max(1, int(np.ceil(3 * sigma)))
    yy, xx = np.mgrid[-r:r + 1, -r:r + 1]
    k = np.exp(-(yy ** 2 + xx ** 2) / (2 * sigma ** 2))
    return k / k.sum()


class ConvolutionOperator(BaseOperator):
    """Full-resolution blur: one measurement per pixel."""

    def __init__(
        self,
        psf: np.ndarray,
        x_shape: Tuple[int, int] = (64, 64),
        operator_id: str = "convolution",
    ):
        psf = np.asarray(psf, dtype=np.float64)
        H, W = x_shape
        if psf.ndim != 2 or psf.shape[0] > H or psf.shape[1] > W:
            raise ValueError(f"psf of shape {psf.shape} does not fit image {tuple(x_shape)}")
        super().__init__(operator_id, x_shape, (H * W,))
        self.psf = psf

        padded = np.zeros((H, W))
        kh, kw = psf.shape
        padded[:kh, :kw] = psf
        padded = np.roll(padded, (-(kh // 2), -(kw // 2)), axis=(0, 1))
        self.otf = np.fft.fft2(padded)

    def forward(self, x: np.ndarray) -> np.ndarray:
        img = np.asarray(x).reshape(self.x_shape)
        y = np.fft.ifft2(np.fft.fft2(img) * self.otf)
        return np.real(y).reshape(-1)

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        meas = np.asarray(y).reshape(self.x_shape)
        x = np.fft.ifft2(np.fft.fft2(meas) * np.conj(self.otf))
        return np.real(x)

    @property
    def transfer_range(self) -> Tuple[float, float]:
        """(min, max) of |OTF|: the extreme singular values of the operator."""
        mag = np.abs(self.otf)
        return float(mag.min()), float(mag.max())

    def info(self) -> Dict[str, Any]:
        info = super().info()
        info.update({"psf_shape": list(self.psf.shape), "transfer_range": self.transfer_range})
        return info
