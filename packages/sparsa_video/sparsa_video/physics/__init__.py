"""Measurement operators (measurement functions with forward/adjoint)."""

from sparsa_video.physics.base import AdjointCheckReport, BaseOperator, check_adjoint

__all__ = ["AdjointCheckReport", "BaseOperator", "check_adjoint"]
