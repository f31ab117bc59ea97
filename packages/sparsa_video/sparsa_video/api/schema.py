"""
sparsa_video.api.schema

Load and validate a VideoReconSpec from YAML or JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from .errors import SpecValidationError
from .types import VideoReconSpec


def read_spec_dict(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise SpecValidationError(f"Spec file not found: {p}")
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise SpecValidationError(
            f"Spec root must be a mapping, got {type(data).__name__}", {"path": str(p)}
        )
    return data


def parse_spec(data: Union[VideoReconSpec, Dict[str, Any]]) -> VideoReconSpec:
    """Validate a raw mapping into a VideoReconSpec."""
    if isinstance(data, VideoReconSpec):
        return data
    try:
        return VideoReconSpec.model_validate(data)
    except ValidationError as e:
        raise SpecValidationError(
            "Invalid VideoReconSpec", {"errors": e.errors(include_url=False)}
        ) from e


def load_spec(path: Union[str, Path]) -> VideoReconSpec:
    return parse_spec(read_spec_dict(path))
