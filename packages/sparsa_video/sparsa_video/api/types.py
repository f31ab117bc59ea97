"""
sparsa_video.api.types

Pydantic models for the reconstruction spec.

These models are intentionally "transport-friendly":
- JSON/YAML-serializable
- Versioned
- Strict (unknown keys and NaN/Inf values are rejected)

They are used by:
- CLI (`sparsa-video simulate`, `sparsa-video run`)
- endpoints (`simulate`, `reconstruct`)
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple

import pywt
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# -----------------------------
# Common helpers
# -----------------------------


class StrictBaseModel(BaseModel):
    """Root model with extra='forbid' and NaN/Inf rejection."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        ser_json_inf_nan="constants",
    )

    @model_validator(mode="after")
    def _reject_nan_inf(self) -> "StrictBaseModel":
        for field_name in self.__class__.model_fields:
            val = getattr(self, field_name)
            if isinstance(val, float) and (math.isnan(val) or math.isinf(val)):
                raise ValueError(
                    f"Field '{field_name}' contains {val!r}, which is not allowed."
                )
        return self


# -----------------------------
# Solver
# -----------------------------


class SolverConfig(StrictBaseModel):
    """Parameters of the per-frame SpaRSA solve."""

    lam: float = Field(0.01, gt=0, description="BPDN sparsity tradeoff (lambda).")
    tol: float = Field(1e-4, gt=0, description="Convergence tolerance.")
    min_iters: int = Field(5, ge=0)
    max_iters: int = Field(10000, ge=1)
    monotone: bool = True
    safeguard: bool = False
    continuation: bool = False
    continuation_steps: int = Field(5, ge=1)
    first_tau_factor: float = Field(0.8, gt=0, le=1)

    @model_validator(mode="after")
    def _check_iters(self) -> "SolverConfig":
        if self.min_iters > self.max_iters:
            raise ValueError(
                f"min_iters ({self.min_iters}) exceeds max_iters ({self.max_iters})"
            )
        return self


# -----------------------------
# Measurement operator
# -----------------------------


class MeasurementKind(str, Enum):
    """How measurements are taken from each frame."""
    subsample = "subsample"   # random pixel selection
    gaussian = "gaussian"     # dense Gaussian projections
    bernoulli = "bernoulli"   # dense +/-1 projections (single-pixel camera)
    convolution = "convolution"  # full-resolution Gaussian blur


class MeasurementConfig(StrictBaseModel):
    kind: MeasurementKind = MeasurementKind.subsample
    sampling_rate: float = Field(0.4, gt=0, le=1, description="M / N.")
    seed: int = 0
    per_frame: bool = Field(
        False, description="Draw a fresh operator for every frame (seed + frame index)."
    )
    noise_sigma: float = Field(0.0, ge=0, description="Additive Gaussian noise (simulate only).")
    psf_sigma: float = Field(0.5, gt=0, description="Gaussian blur width in pixels (convolution only).")


# -----------------------------
# Sparsity transform
# -----------------------------


class TransformConfig(StrictBaseModel):
    wavelet: str = Field("db4", description="PyWavelets name, or 'identity' for pixel basis.")
    level: Optional[int] = Field(default=None, ge=1)

    @field_validator("wavelet")
    @classmethod
    def _known_wavelet(cls, v: str) -> str:
        if v != "identity" and v not in pywt.wavelist(kind="discrete"):
            raise ValueError(f"Unknown discrete wavelet '{v}'")
        return v


# -----------------------------
# Outputs
# -----------------------------


class OutputsConfig(StrictBaseModel):
    count_operator_calls: bool = False
    report_convergence: bool = False
    save: bool = True


# -----------------------------
# VideoReconSpec (v0.3)
# -----------------------------


class VideoReconSpec(StrictBaseModel):
    version: str = "0.3"
    id: str = "sparsa_video_run"
    measurements: Optional[str] = Field(
        default=None, description="Path to an .npz file with 'y' (M, T) and optional 'x_true'."
    )
    image_shape: Tuple[int, int] = (32, 32)
    n_frames: int = Field(4, ge=1, description="Frames to synthesize (simulate only).")
    seed: int = Field(0, description="Scene seed (simulate only).")
    solver: SolverConfig = Field(default_factory=SolverConfig)
    measurement: MeasurementConfig = Field(default_factory=MeasurementConfig)
    transform: TransformConfig = Field(default_factory=TransformConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)

    @field_validator("image_shape")
    @classmethod
    def _positive_shape(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        if min(v) < 1:
            raise ValueError(f"image_shape must be positive, got {v}")
        return v
