"""sparsa_video.io.formats

Minimal format helpers for .npz / .npy / .json.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np


def load_npz_dict(path: str) -> Dict[str, np.ndarray]:
    with np.load(path) as d:
        return {k: d[k] for k in d.files}


def save_npz(path: str, **arrays: np.ndarray) -> None:
    np.savez_compressed(path, **arrays)


def write_json(path: Union[str, Path], payload: Dict[str, Any]) -> None:
    Path(path).write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
