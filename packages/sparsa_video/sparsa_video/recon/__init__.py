"""Reconstruction: SpaRSA solver, operator composition and the frame loop."""

from sparsa_video.recon.composition import ComposedOperators, compose_operators
from sparsa_video.recon.counting import OperatorCallCounter
from sparsa_video.recon.sparsa import SparsaResult, StopCriterion, soft_threshold, sparsa
from sparsa_video.recon.video import (
    FrameResult,
    MeasurementSchedule,
    VideoReconOptions,
    VideoReconResult,
    reconstruct_video,
)

__all__ = [
    "ComposedOperators", "compose_operators",
    "OperatorCallCounter",
    "SparsaResult", "StopCriterion", "soft_threshold", "sparsa",
    "FrameResult", "MeasurementSchedule", "VideoReconOptions",
    "VideoReconResult", "reconstruct_video",
]
