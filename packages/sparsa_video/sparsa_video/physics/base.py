"""sparsa_video.physics.base

Core measurement-operator abstraction.

Every operator maps an image of shape ``x_shape`` to a measurement vector of
shape ``y_shape`` and provides the adjoint.  ``check_adjoint`` verifies the
pair with the inner-product identity <A x, y> = <x, A^H y>, using complex
inner products so conjugate-transpose adjoints are tested correctly.  It
works on anything with ``forward``/``adjoint``; ``BaseOperator`` exposes it
as a method.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class AdjointCheckReport:
    """Outcome of an inner-product adjoint test on one operator."""

    operator_id: str
    passed: bool
    tolerance: float
    relative_errors: List[float] = field(default_factory=list)

    @property
    def max_relative_error(self) -> float:
        return max(self.relative_errors, default=0.0)

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return (
            f"{self.operator_id} adjoint [{status}]: "
            f"max_rel_err={self.max_relative_error:.2e} over "
            f"{len(self.relative_errors)} trials (tol={self.tolerance:.2e})"
        )


def check_adjoint(
    op: Any,
    x_shape: Tuple[int, ...],
    y_shape: Tuple[int, ...],
    n_trials: int = 3,
    tol: float = 1e-8,
    seed: int = 0,
    operator_id: Optional[str] = None,
) -> AdjointCheckReport:
    """Test <op.forward(x), y> == <x, op.adjoint(y)> on random x, y.

    Failures are logged at WARNING and reported, not raised.
    """
    rng = np.random.default_rng(seed)
    name = operator_id or getattr(op, "operator_id", type(op).__name__)
    errors = []
    for _ in range(n_trials):
        x = rng.standard_normal(x_shape)
        y = rng.standard_normal(y_shape)
        lhs = np.vdot(np.ravel(op.forward(x)), y.ravel())
        rhs = np.vdot(x.ravel(), np.ravel(op.adjoint(y)))
        scale = max(abs(lhs), abs(rhs), 1e-30)
        errors.append(float(abs(lhs - rhs) / scale))

    report = AdjointCheckReport(
        operator_id=name,
        passed=max(errors, default=0.0) <= tol,
        tolerance=tol,
        relative_errors=errors,
    )
    if report.passed:
        logger.debug("%s", report.summary())
    else:
        logger.warning("Adjoint mismatch: %s", report.summary())
    return report


class BaseOperator:
    """Convenience base class for measurement operators.

    Subclasses must implement forward() and adjoint().
    """

    def __init__(
        self,
        operator_id: str,
        x_shape: Tuple[int, ...],
        y_shape: Tuple[int, ...],
    ):
        self.operator_id = operator_id
        self._x_shape = tuple(x_shape)
        self._y_shape = tuple(y_shape)

    def forward(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError("Subclass must implement forward()")

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        raise NotImplementedError("Subclass must implement adjoint()")

    def info(self) -> Dict[str, Any]:
        return {
            "operator_id": self.operator_id,
            "x_shape": self._x_shape,
            "y_shape": self._y_shape,
        }

    @property
    def x_shape(self) -> Tuple[int, ...]:
        return self._x_shape

    @property
    def y_shape(self) -> Tuple[int, ...]:
        return self._y_shape

    def check_adjoint(self, n_trials: int = 3, tol: float = 1e-8, seed: int = 0) -> AdjointCheckReport:
        return check_adjoint(
            self, self._x_shape, self._y_shape,
            n_trials=n_trials, tol=tol, seed=seed, operator_id=self.operator_id,
        )
