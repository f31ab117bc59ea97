"""Compressive sensing operators."""

from sparsa_video.physics.compressive.projection_operator import ProjectionOperator
from sparsa_video.physics.compressive.subsample_operator import SubsampleOperator

__all__ = ["ProjectionOperator", "SubsampleOperator"]
