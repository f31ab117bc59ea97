"""sparsa_video.transforms.wavelet

2-D discrete wavelet transform as a sparsity basis (PyWavelets).

Periodic boundary handling (``mode="periodization"``) keeps the number of
coefficients equal to the number of pixels, and with an orthogonal wavelet
(Haar, Daubechies, Symlets, Coiflets) the transform is orthonormal, so
``invert`` is also the adjoint of ``apply``.

The coefficient pyramid is packed into one array with
``pywt.coeffs_to_array`` and flattened; the packing layout is computed once
for the configured image shape.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import pywt


class WaveletTransform:
    """apply: image -> coefficient vector; invert: coefficient vector -> image."""

    def __init__(
        self,
        image_shape: Tuple[int, int],
        wavelet: str = "db4",
        level: Optional[int] = None,
        mode: str = "periodization",
    ):
        self.image_shape = tuple(image_shape)
        self.wavelet = pywt.Wavelet(wavelet)
        self.mode = mode
        if level is None:
            level = max(1, pywt.dwtn_max_level(self.image_shape, self.wavelet))
        self.level = level

        probe = pywt.wavedec2(np.zeros(self.image_shape), self.wavelet, mode=mode, level=level)
        arr, self._slices = pywt.coeffs_to_array(probe)
        self._arr_shape = arr.shape

    @property
    def n_coeffs(self) -> int:
        return int(np.prod(self._arr_shape))

    def apply(self, image: np.ndarray) -> np.ndarray:
        img = np.asarray(image).reshape(self.image_shape)
        coeffs = pywt.wavedec2(img, self.wavelet, mode=self.mode, level=self.level)
        arr, _ = pywt.coeffs_to_array(coeffs)
        return arr.reshape(-1)

    def invert(self, coeffs: np.ndarray) -> np.ndarray:
        arr = np.asarray(coeffs).reshape(self._arr_shape)
        pyramid = pywt.array_to_coeffs(arr, self._slices, output_format="wavedec2")
        img = pywt.waverec2(pyramid, self.wavelet, mode=self.mode)
        H, W = self.image_shape
        return img[:H, :W]

    def info(self) -> Dict[str, Any]:
        return {
            "wavelet": self.wavelet.name,
            "level": self.level,
            "mode": self.mode,
            "image_shape": self.image_shape,
            "n_coeffs": self.n_coeffs,
        }


class IdentityTransform:
    """Pixel basis: coefficients are the raveled image."""

    def __init__(self, image_shape: Tuple[int, int]):
        self.image_shape = tuple(image_shape)

    @property
    def n_coeffs(self) -> int:
        return int(np.prod(self.image_shape))

    def apply(self, image: np.ndarray) -> np.ndarray:
        return np.asarray(image).reshape(-1)

    def invert(self, coeffs: np.ndarray) -> np.ndarray:
        return np.asarray(coeffs).reshape(self.image_shape)

    def info(self) -> Dict[str, Any]:
        return {"wavelet": "identity", "image_shape": self.image_shape}
