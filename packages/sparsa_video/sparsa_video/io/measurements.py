"""sparsa_video.io.measurements

I/O for measured video sequences and reconstruction results.

Measurement files are .npz archives with
- ``y``: (M, T) measurements, frame index on the last axis
- ``x_true`` (optional): (H, W, T) ground-truth video
and an optional ``<name>.json`` sidecar with metadata.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from sparsa_video.api.errors import MeasurementLoadError
from sparsa_video.io.formats import load_npz_dict, save_npz, write_json
from sparsa_video.recon.video import VideoReconResult

logger = logging.getLogger(__name__)


@dataclass
class VideoMeasurements:
    y: np.ndarray
    x_true: Optional[np.ndarray] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_frames(self) -> int:
        return int(self.y.shape[-1])


def load_video_measurements(path: str) -> VideoMeasurements:
    p = Path(path)
    if not p.exists():
        raise MeasurementLoadError(f"Measurement file not found: {p}")
    if p.suffix == ".npz":
        data = load_npz_dict(str(p))
    elif p.suffix == ".npy":
        data = {"y": np.load(str(p))}
    else:
        raise MeasurementLoadError(f"Unsupported measurement format: {p}")
    if "y" not in data:
        raise MeasurementLoadError(f"'{p}' has no 'y' array (keys: {sorted(data)})")

    y = data["y"]
    if y.ndim == 1:
        y = y[:, None]
    x_true = data.get("x_true")
    if x_true is not None and x_true.shape[-1] != y.shape[-1]:
        raise MeasurementLoadError(
            f"x_true has {x_true.shape[-1]} frames but y has {y.shape[-1]}"
        )

    meta: Dict[str, Any] = {}
    meta_path = p.with_suffix(".json")
    if meta_path.exists():
        meta = json.loads(meta_path.read_text(encoding="utf-8"))

    logger.info("Loaded %d frames of %d measurements from %s", y.shape[-1], y.shape[0], p)
    return VideoMeasurements(y=y, x_true=x_true, meta=meta)


def save_video_measurements(
    out_dir: str,
    y: np.ndarray,
    x_true: Optional[np.ndarray] = None,
    meta: Optional[Dict[str, Any]] = None,
    name: str = "measurements",
) -> str:
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    path = Path(out_dir) / f"{name}.npz"
    arrays = {"y": y}
    if x_true is not None:
        arrays["x_true"] = x_true
    save_npz(str(path), **arrays)
    if meta:
        write_json(path.with_suffix(".json"), meta)
    return str(path)


def summarize_result(result: VideoReconResult) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "n_frames": result.n_frames,
        "image_shape": list(result.image_shape),
        "n_coeffs": result.n_coeffs,
        "total_time_s": float(np.sum(result.times)),
        "meta": result.meta,
    }
    if result.compute_error_metrics:
        summary["rmse"] = result.rmse.tolist()
        summary["psnr"] = result.psnr.tolist()
    if result.count_operator_calls:
        summary["operator_calls"] = result.operator_calls.tolist()
    if result.report_convergence:
        summary["converged"] = result.converged.tolist()
        summary["n_iterations"] = [f.n_iterations for f in result.frames]
    return summary


def save_video_result(result: VideoReconResult, out_dir: str) -> str:
    """Write recon.npz (stacked arrays) and summary.json; returns the npz path."""
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    arrays = {
        "coefficients": result.coefficients,
        "images": result.images,
        "times": result.times,
    }
    for name in ("rmse", "psnr", "operator_calls"):
        value = getattr(result, name)
        if value is not None:
            arrays[name] = value
    path = Path(out_dir) / "recon.npz"
    save_npz(str(path), **arrays)
    write_json(Path(out_dir) / "summary.json", summarize_result(result))
    logger.info("Saved reconstruction to %s", path)
    return str(path)
