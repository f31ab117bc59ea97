"""Sparsity transforms (apply / invert pairs)."""

from __future__ import annotations

from typing import Tuple, Union

from sparsa_video.api.types import TransformConfig
from sparsa_video.transforms.wavelet import IdentityTransform, WaveletTransform


def build_transform(
    cfg: TransformConfig,
    image_shape: Tuple[int, int],
) -> Union[WaveletTransform, IdentityTransform]:
    if cfg.wavelet == "identity":
        return IdentityTransform(image_shape)
    return WaveletTransform(image_shape, wavelet=cfg.wavelet, level=cfg.level)


__all__ = ["IdentityTransform", "WaveletTransform", "build_transform"]
