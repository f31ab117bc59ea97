"""sparsa_video.recon.video

Frame-by-frame video reconstruction with warm-started SpaRSA.

For every frame k the BPDN problem

    min_c 0.5 * ||A_k(W^-1 c) - y_k||^2 + lam * ||c||_1

is solved in the coefficient domain of the sparsity transform W.  Frames are
processed strictly in order: the coefficients recovered for frame k are the
initialization of frame k+1 (frame 0 starts from zero).

Measurement functions are given either once (shared by all frames) or once
per frame.  Any other count is a configuration error, raised before the
first frame is touched.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from sparsa_video.analysis.metrics import psnr, relative_mse
from sparsa_video.api.errors import ConfigurationError
from sparsa_video.recon.composition import ComposedOperators, compose_operators
from sparsa_video.recon.counting import OperatorCallCounter
from sparsa_video.recon.protocols import LinearLikeOperator, SparsityTransform
from sparsa_video.recon.sparsa import SparsaResult, StopCriterion, sparsa

logger = logging.getLogger(__name__)

Solver = Callable[..., SparsaResult]


# ---------------------------------------------------------------------------
# Options / results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VideoReconOptions:
    """Which optional computations to run.

    Error metrics are computed whenever ground truth is supplied, unless
    ``compute_error_metrics`` is False.
    """
    compute_error_metrics: Optional[bool] = None
    count_operator_calls: bool = False
    report_convergence: bool = False


@dataclass(frozen=True)
class FrameResult:
    index: int
    coefficients: np.ndarray
    image: np.ndarray
    elapsed: float
    rmse: Optional[float] = None
    psnr: Optional[float] = None
    n_operator_calls: Optional[int] = None
    converged: Optional[bool] = None
    n_iterations: Optional[int] = None


@dataclass
class VideoReconResult:
    """Per-frame records plus stacked views (frame index on the last axis)."""

    frames: List[FrameResult]
    image_shape: Tuple[int, ...]
    n_coeffs: int
    compute_error_metrics: bool
    count_operator_calls: bool
    report_convergence: bool
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_frames(self) -> int:
        return len(self.frames)

    @property
    def coefficients(self) -> np.ndarray:
        return np.stack([f.coefficients.reshape(-1) for f in self.frames], axis=-1)

    @property
    def images(self) -> np.ndarray:
        return np.stack([f.image for f in self.frames], axis=-1)

    @property
    def rmse(self) -> Optional[np.ndarray]:
        if not self.compute_error_metrics:
            return None
        return np.array([f.rmse for f in self.frames], dtype=np.float64)

    @property
    def psnr(self) -> Optional[np.ndarray]:
        if not self.compute_error_metrics:
            return None
        return np.array([f.psnr for f in self.frames], dtype=np.float64)

    @property
    def times(self) -> np.ndarray:
        return np.array([f.elapsed for f in self.frames], dtype=np.float64)

    @property
    def operator_calls(self) -> Optional[np.ndarray]:
        if not self.count_operator_calls:
            return None
        return np.array([f.n_operator_calls for f in self.frames], dtype=np.int64)

    @property
    def converged(self) -> Optional[np.ndarray]:
        if not self.report_convergence:
            return None
        return np.array([f.converged for f in self.frames], dtype=bool)

    def as_tuple(self, n_outputs: int) -> Tuple[Optional[np.ndarray], ...]:
        """Positional outputs: coefficients, images, rmse, psnr, times, operator calls.

        Slots that were not computed, and any slot past the sixth, are None.
        """
        if n_outputs < 0:
            raise ValueError(f"n_outputs must be non-negative, got {n_outputs}")
        slots = [
            self.coefficients,
            self.images,
            self.rmse,
            self.psnr,
            self.times,
            self.operator_calls,
        ]
        slots += [None] * max(0, n_outputs - len(slots))
        return tuple(slots[:n_outputs])


# ---------------------------------------------------------------------------
# Measurement schedule (shared or per-frame operator)
# ---------------------------------------------------------------------------


class MeasurementSchedule:
    """One measurement function for all frames, or one per frame."""

    def __init__(self, operators: Sequence[LinearLikeOperator], n_frames: int):
        self._operators = list(operators)
        self.n_frames = n_frames

    @classmethod
    def from_functions(
        cls,
        functions: Union[LinearLikeOperator, Sequence[LinearLikeOperator]],
        n_frames: int,
    ) -> "MeasurementSchedule":
        if isinstance(functions, LinearLikeOperator):
            ops = [functions]
        else:
            ops = list(functions)
        if len(ops) not in (1, n_frames):
            raise ConfigurationError(
                "Need either one measurement function for all frames "
                "or one measurement function per frame",
                {"n_functions": len(ops), "n_frames": n_frames},
            )
        return cls(ops, n_frames)

    @property
    def per_frame(self) -> bool:
        return len(self._operators) > 1

    def operator_for(self, frame_index: int) -> LinearLikeOperator:
        if self.per_frame:
            return self._operators[frame_index]
        return self._operators[0]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _stack_frames(data: Union[np.ndarray, Sequence[np.ndarray]]) -> np.ndarray:
    if isinstance(data, np.ndarray):
        return data
    return np.stack([np.asarray(d) for d in data], axis=-1)


def _as_measurement_matrix(measurements: Union[np.ndarray, Sequence[np.ndarray]]) -> np.ndarray:
    """(M, T) view of the measurement sequence."""
    arr = _stack_frames(measurements)
    if arr.ndim == 1:
        return arr[:, None]
    return arr.reshape(-1, arr.shape[-1])


def _probe_shapes(
    operator: LinearLikeOperator,
    transform: SparsityTransform,
    y0: np.ndarray,
) -> Tuple[Tuple[int, ...], int]:
    """Image shape and coefficient count from one adjoint + apply."""
    temp = np.asarray(operator.adjoint(y0))
    if temp.ndim == 2:
        image_shape: Tuple[int, ...] = temp.shape
    else:
        side = math.isqrt(temp.size)
        image_shape = (side, side)
    n_coeffs = int(np.size(transform.apply(temp)))
    return image_shape, n_coeffs


def _solve_frame(
    y: np.ndarray,
    ops: ComposedOperators,
    init: Union[int, np.ndarray],
    lam: float,
    tol: float,
    transform: SparsityTransform,
    image_shape: Tuple[int, ...],
    solver: Solver,
    solver_options: Dict[str, Any],
) -> Tuple[SparsaResult, np.ndarray, float]:
    """Solve one frame; returns the solver result, the image and elapsed seconds."""
    t0 = time.perf_counter()
    res = solver(
        y, ops.forward, lam, ops.adjoint,
        tol=tol,
        stop_criterion=StopCriterion.RELATIVE_CHANGE,
        init=init,
        verbose=False,
        **solver_options,
    )
    image = np.reshape(transform.invert(res.x), image_shape)
    elapsed = time.perf_counter() - t0
    return res, image, elapsed


# ---------------------------------------------------------------------------
# Frame loop
# ---------------------------------------------------------------------------


def reconstruct_video(
    measurements: Union[np.ndarray, Sequence[np.ndarray]],
    measurement_functions: Union[LinearLikeOperator, Sequence[LinearLikeOperator]],
    lam: float,
    tol: float,
    transform: SparsityTransform,
    true_video: Optional[Union[np.ndarray, Sequence[np.ndarray]]] = None,
    options: Optional[VideoReconOptions] = None,
    solver: Solver = sparsa,
    solver_options: Optional[Dict[str, Any]] = None,
) -> VideoReconResult:
    """Reconstruct a video frame by frame with warm-started SpaRSA.

    Args:
        measurements: (M, T) array, or a sequence of T measurement vectors
        measurement_functions: one operator (``forward``/``adjoint``) shared
            by all frames, or a sequence of exactly T operators
        lam: BPDN sparsity tradeoff
        tol: Solver tolerance (relative-change stopping rule)
        transform: Sparsity basis with ``apply``/``invert``
        true_video: Optional (H, W, T) ground truth for rMSE/PSNR
        options: Which optional outputs to compute
        solver: Solver with the ``sparsa`` calling convention
        solver_options: Extra keyword arguments for the solver

    Returns:
        VideoReconResult

    Raises:
        ConfigurationError: measurement function count is neither 1 nor T.
    """
    options = options or VideoReconOptions()
    solver_options = dict(solver_options or {})

    meas = _as_measurement_matrix(measurements)
    n_frames = meas.shape[-1]
    schedule = MeasurementSchedule.from_functions(measurement_functions, n_frames)

    truth = _stack_frames(true_video) if true_video is not None else None
    # Metrics need ground truth; without it the rmse/psnr slots stay empty
    compute_metrics = truth is not None and options.compute_error_metrics is not False

    image_shape, n_coeffs = _probe_shapes(schedule.operator_for(0), transform, meas[:, 0])
    logger.debug(
        "Reconstructing %d frames: image %s, %d coefficients, %s measurement function",
        n_frames, image_shape, n_coeffs, "per-frame" if schedule.per_frame else "shared",
    )

    counter = OperatorCallCounter() if options.count_operator_calls else None
    ops: Optional[ComposedOperators] = None
    frames: List[FrameResult] = []
    coeffs: Union[int, np.ndarray] = 0

    for kk in range(n_frames):
        if ops is None or schedule.per_frame:
            ops = compose_operators(schedule.operator_for(kk), transform, counter)
        if counter is not None:
            counter.reset()

        res, image, elapsed = _solve_frame(
            meas[:, kk], ops, coeffs, lam, tol,
            transform, image_shape, solver, solver_options,
        )
        coeffs = res.x

        rmse_k = psnr_k = None
        if compute_metrics:
            truth_k = truth[..., kk]
            rmse_k = relative_mse(image, truth_k)
            psnr_k = psnr(np.real(image), truth_k)
            logger.info(
                "Finished frame %d of %d in %f seconds. PSNR is %f. rMSE is %f.",
                kk + 1, n_frames, elapsed, psnr_k, rmse_k,
            )
        else:
            logger.info("Finished frame %d of %d in %f seconds.", kk + 1, n_frames, elapsed)

        n_calls = None
        if counter is not None:
            n_calls = counter.count
            logger.info("Operator calls: %d", n_calls)

        frames.append(
            FrameResult(
                index=kk,
                coefficients=coeffs,
                image=image,
                elapsed=elapsed,
                rmse=rmse_k,
                psnr=psnr_k,
                n_operator_calls=n_calls,
                converged=res.converged if options.report_convergence else None,
                n_iterations=res.n_iterations if options.report_convergence else None,
            )
        )

    return VideoReconResult(
        frames=frames,
        image_shape=tuple(image_shape),
        n_coeffs=n_coeffs,
        compute_error_metrics=compute_metrics,
        count_operator_calls=counter is not None,
        report_convergence=options.report_convergence,
        meta={"lam": lam, "tol": tol, "per_frame_operators": schedule.per_frame},
    )
