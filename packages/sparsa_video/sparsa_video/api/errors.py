"""
sparsa_video.api.errors

Typed exceptions for API boundaries.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SparsaVideoError(Exception):
    """Base sparsa_video error."""


class ConfigurationError(SparsaVideoError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class SpecValidationError(SparsaVideoError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class MeasurementLoadError(SparsaVideoError):
    pass
