"""Adapters that turn matrices or plain callables into operators."""

from sparsa_video.physics.adapters.callable_operator import CallableOperator
from sparsa_video.physics.adapters.matrix_operator import MatrixOperator

__all__ = ["CallableOperator", "MatrixOperator"]
