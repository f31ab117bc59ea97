"""sparsa_video

Frame-by-frame compressive video reconstruction with SpaRSA.

Each frame is recovered by solving a Basis-Pursuit-Denoising problem in a
wavelet basis, warm-started from the previous frame's coefficients.
"""

from sparsa_video.recon.sparsa import SparsaResult, StopCriterion, sparsa
from sparsa_video.recon.video import (
    FrameResult,
    VideoReconOptions,
    VideoReconResult,
    reconstruct_video,
)

__version__ = "0.3.0"

__all__ = [
    "sparsa",
    "SparsaResult",
    "StopCriterion",
    "reconstruct_video",
    "FrameResult",
    "VideoReconOptions",
    "VideoReconResult",
]
