"""sparsa_video.physics.adapters.callable_operator

Wrap user-provided python callables:
- forward_fn(x) -> y
- adjoint_fn(y) -> x

Useful for binding measurement functions from existing codebases.
"""

from __future__ import annotations

from typing import Any, Callable, Tuple

from sparsa_video.physics.base import BaseOperator


class CallableOperator(BaseOperator):
    """Operator backed by user-provided forward/adjoint callables.

    Parameters
    ----------
    forward_fn : callable
        Forward function: x -> y.
    adjoint_fn : callable
        Adjoint function: y -> x.
    x_shape : tuple[int, ...]
        Expected input shape.
    y_shape : tuple[int, ...]
        Expected output shape.
    name : str, optional
        Human-readable name (mapped to operator_id).
    """

    def __init__(
        self,
        forward_fn: Callable[[Any], Any],
        adjoint_fn: Callable[[Any], Any],
        x_shape: Tuple[int, ...],
        y_shape: Tuple[int, ...],
        name: str = "callable_op",
    ):
        if not callable(forward_fn):
            raise ValueError("forward_fn must be callable")
        if not callable(adjoint_fn):
            raise ValueError("adjoint_fn must be callable")
        super().__init__(operator_id=name, x_shape=x_shape, y_shape=y_shape)
        self.fwd = forward_fn
        self.adj = adjoint_fn

    def forward(self, x: Any) -> Any:
        return self.fwd(x)

    def adjoint(self, y: Any) -> Any:
        return self.adj(y)
