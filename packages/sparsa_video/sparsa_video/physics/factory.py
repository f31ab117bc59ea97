"""sparsa_video.physics.factory

Build measurement operators from a MeasurementConfig.

Routes on ``kind``:
- subsample: SubsampleOperator (random pixel selection)
- gaussian: ProjectionOperator (Gaussian rows)
- bernoulli: ProjectionOperator (+/-1 rows)
- convolution: ConvolutionOperator (Gaussian psf, ``sampling_rate`` unused)

With ``per_frame`` one operator is drawn per frame, frame t using seed
``seed + t``; otherwise a single operator is shared by every frame.  Each
built operator goes through ``check_adjoint``; a mismatch is logged as a
warning.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from sparsa_video.api.types import MeasurementConfig, MeasurementKind
from sparsa_video.physics.base import BaseOperator, check_adjoint
from sparsa_video.physics.compressive import ProjectionOperator, SubsampleOperator
from sparsa_video.physics.convolution import ConvolutionOperator, gaussian_psf

logger = logging.getLogger(__name__)


def build_measurement_operator(
    cfg: MeasurementConfig,
    image_shape: Tuple[int, int],
    seed: int,
) -> BaseOperator:
    if cfg.kind == MeasurementKind.subsample:
        return SubsampleOperator(image_shape, cfg.sampling_rate, seed)
    if cfg.kind == MeasurementKind.convolution:
        return ConvolutionOperator(gaussian_psf(cfg.psf_sigma), image_shape)
    return ProjectionOperator(image_shape, cfg.sampling_rate, seed, ensemble=cfg.kind.value)


def build_measurement_operators(
    cfg: MeasurementConfig,
    image_shape: Tuple[int, int],
    n_frames: int,
) -> List[BaseOperator]:
    """One shared operator, or ``n_frames`` operators when ``cfg.per_frame``."""
    count = n_frames if cfg.per_frame else 1
    ops = [build_measurement_operator(cfg, image_shape, cfg.seed + t) for t in range(count)]
    for op in ops:
        check_adjoint(op, op.x_shape, op.y_shape, seed=cfg.seed)
    logger.info(
        "Built %d %s operator(s): image %s -> %d measurements",
        len(ops), cfg.kind.value, tuple(image_shape), ops[0].y_shape[0],
    )
    return ops
