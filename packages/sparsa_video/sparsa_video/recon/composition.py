"""sparsa_video.recon.composition

Compose a measurement function with a sparsity transform into the pair of
operators the solver works with, both acting on coefficient vectors:

    forward(c) = A(W^-1 c)      coefficients -> measurements
    adjoint(y) = W(A^T y)       measurements -> coefficients
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from sparsa_video.recon.counting import OperatorCallCounter
from sparsa_video.recon.protocols import LinearLikeOperator, SparsityTransform


@dataclass(frozen=True)
class ComposedOperators:
    forward: Callable[[np.ndarray], np.ndarray]
    adjoint: Callable[[np.ndarray], np.ndarray]


def compose_operators(
    measurement: LinearLikeOperator,
    transform: SparsityTransform,
    counter: Optional[OperatorCallCounter] = None,
) -> ComposedOperators:
    """Build coefficient-domain forward/adjoint operators.

    Args:
        measurement: Object with ``forward``/``adjoint``.
        transform: Object with ``apply``/``invert``.
        counter: If given, each composed evaluation increments it once.

    Returns:
        ComposedOperators
    """
    phi = measurement.forward
    phit = measurement.adjoint
    w_apply = transform.apply
    w_invert = transform.invert

    def forward(coeffs: np.ndarray) -> np.ndarray:
        return phi(w_invert(coeffs))

    def adjoint(meas: np.ndarray) -> np.ndarray:
        return w_apply(phit(meas))

    if counter is not None:
        return ComposedOperators(counter.wrap(forward), counter.wrap(adjoint))
    return ComposedOperators(forward, adjoint)
