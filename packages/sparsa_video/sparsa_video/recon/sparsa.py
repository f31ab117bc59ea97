"""SpaRSA: Sparse Reconstruction by Separable Approximation.

Solves the Basis-Pursuit-Denoising problem

    min_x 0.5 * ||A(x) - y||_2^2 + tau * ||x||_1

by forward-backward splitting: a gradient step on the quadratic term,
followed by soft thresholding, with a Barzilai-Borwein step length and
backtracking until the acceptance test holds.

References:
- Wright, S., Nowak, R. & Figueiredo, M. (2009). "Sparse reconstruction by
  separable approximation", IEEE Trans. Signal Processing 57(7).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, List, Optional, Tuple, Union

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import LinearOperator, aslinearoperator

logger = logging.getLogger(__name__)

Operator = Callable[[np.ndarray], np.ndarray]

ALPHA_MIN = 1e-30
ALPHA_MAX = 1e30


class StopCriterion(IntEnum):
    """Stopping rules, compared against ``tol``."""

    ACTIVE_SET = 0       # relative change in the set of nonzero coefficients
    OBJECTIVE = 1        # relative change in the objective
    STEP = 2             # ||x_k - x_{k-1}|| / ||x_k||
    RELATIVE_CHANGE = 3  # both OBJECTIVE and STEP below tol
    TARGET = 4           # objective at or below tol


@dataclass
class SparsaResult:
    x: np.ndarray
    objective: List[float] = field(default_factory=list)
    n_iterations: int = 0
    converged: bool = False
    tau: float = 0.0


def soft_threshold(x: np.ndarray, tau: float) -> np.ndarray:
    """Soft thresholding (proximal operator for L1 norm).

    Complex entries are shrunk in magnitude with their phase kept.
    """
    if np.iscomplexobj(x):
        mag = np.abs(x)
        shrunk = np.maximum(mag - tau, 0)
        return x * (shrunk / np.maximum(mag, np.finfo(np.float64).tiny))
    return np.sign(x) * np.maximum(np.abs(x) - tau, 0)


def _sqnorm(v: np.ndarray) -> float:
    return float(np.real(np.vdot(v, v)))


def _objective(resid: np.ndarray, x: np.ndarray, tau: float) -> float:
    return 0.5 * _sqnorm(resid) + tau * float(np.sum(np.abs(x)))


def _relative(num: float, den: float) -> float:
    if den > 0:
        return num / den
    return 0.0 if num == 0 else np.inf


def _as_operators(A: Any, AT: Optional[Operator]) -> Tuple[Operator, Operator]:
    """Resolve ``A``/``AT`` into a pair of callables."""
    if isinstance(A, (np.ndarray, LinearOperator)) or sp.issparse(A):
        op = aslinearoperator(A)
        return op.matvec, (AT if AT is not None else op.rmatvec)
    if not callable(A):
        raise TypeError(f"A must be a matrix or a callable, got {type(A).__name__}")
    if AT is None:
        raise ValueError("AT is required when A is given as a function")
    return A, AT


def _initial_x(
    init: Union[int, float, np.ndarray],
    Aty: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Initial iterate: 0 -> zeros, 1 -> random, 2 -> A^T y, or an explicit array."""
    if np.ndim(init) == 0:
        code = int(init)
        if code == 0:
            return np.zeros_like(Aty)
        if code == 1:
            return rng.standard_normal(Aty.shape).astype(Aty.dtype, copy=False)
        if code == 2:
            return Aty
        raise ValueError(f"Unknown initialization option: {init!r}")
    x = np.asarray(init)
    if x.size != Aty.size:
        raise ValueError(
            f"Size of initial x ({x.size}) is not compatible with A^T y ({Aty.size})"
        )
    return x.reshape(Aty.shape)


def _criterion(
    stop: StopCriterion,
    f: float,
    prev_f: float,
    x: np.ndarray,
    dx: np.ndarray,
    nonzero: np.ndarray,
    prev_nonzero: np.ndarray,
) -> float:
    if stop == StopCriterion.ACTIVE_SET:
        n_nz = int(np.count_nonzero(nonzero))
        if n_nz == 0:
            return 0.0
        return int(np.count_nonzero(nonzero != prev_nonzero)) / n_nz
    if stop == StopCriterion.OBJECTIVE:
        return _relative(abs(f - prev_f), prev_f)
    if stop == StopCriterion.STEP:
        return _relative(np.sqrt(_sqnorm(dx)), np.sqrt(_sqnorm(x)))
    if stop == StopCriterion.RELATIVE_CHANGE:
        return max(
            _relative(abs(f - prev_f), prev_f),
            _relative(np.sqrt(_sqnorm(dx)), np.sqrt(_sqnorm(x))),
        )
    return f


def _iterate(
    y: np.ndarray,
    A: Operator,
    AT: Operator,
    tau: float,
    x: np.ndarray,
    tol: float,
    stop: StopCriterion,
    min_iters: int,
    max_iters: int,
    monotone: bool,
    safeguard: bool,
    memory: int,
    sigma: float,
    eta: float,
    verbose: bool,
) -> Tuple[np.ndarray, List[float], int, bool]:
    """Run SpaRSA iterations for one value of tau."""
    resid = A(x) - y
    f = _objective(resid, x, tau)
    objective = [f]
    past_f = deque([f] * memory, maxlen=memory)
    alpha = 1.0
    nonzero = x != 0
    best_x, best_f = x, f
    converged = False
    it = 0

    while True:
        gradient = AT(resid)
        prev_x, prev_resid, prev_f = x, resid, f

        # Backtrack on alpha until the acceptance test holds
        while True:
            x = soft_threshold(prev_x - gradient / alpha, tau / alpha)
            dx = x - prev_x
            Adx = A(dx)
            resid = prev_resid + Adx
            f = _objective(resid, x, tau)
            if monotone:
                threshold = prev_f
            elif safeguard:
                threshold = max(past_f) - 0.5 * sigma * alpha * _sqnorm(dx)
            else:
                break
            if f <= threshold or alpha >= ALPHA_MAX:
                break
            alpha = min(eta * alpha, ALPHA_MAX)

        it += 1

        # Barzilai-Borwein step for the next iteration
        dd = _sqnorm(dx)
        if dd > 0:
            alpha = min(ALPHA_MAX, max(ALPHA_MIN, _sqnorm(Adx) / dd))

        past_f.append(f)
        objective.append(f)
        if f < best_f:
            best_x, best_f = x, f

        prev_nonzero, nonzero = nonzero, x != 0
        crit = _criterion(stop, f, prev_f, x, dx, nonzero, prev_nonzero)

        if verbose:
            logger.debug(
                "SpaRSA iter=%d obj=%.6e alpha=%.3e nnz=%d crit=%.3e",
                it, f, alpha, int(np.count_nonzero(nonzero)), crit,
            )

        if it <= min_iters:
            continue
        if crit <= tol:
            converged = True
            break
        if it >= max_iters:
            break

    if monotone:
        best_x = x
    return best_x, objective, it, converged


def sparsa(
    y: np.ndarray,
    A: Any,
    tau: float,
    AT: Optional[Operator] = None,
    *,
    tol: float = 1e-2,
    stop_criterion: Union[int, StopCriterion] = StopCriterion.RELATIVE_CHANGE,
    init: Union[int, float, np.ndarray] = 0,
    min_iters: int = 5,
    max_iters: int = 10000,
    monotone: bool = True,
    safeguard: bool = False,
    safeguard_memory: int = 5,
    sigma: float = 0.01,
    eta: float = 2.0,
    continuation: bool = False,
    continuation_steps: int = 5,
    first_tau_factor: float = 0.8,
    seed: Optional[int] = None,
    verbose: bool = False,
) -> SparsaResult:
    """SpaRSA for min_x 0.5 * ||A(x) - y||^2 + tau * ||x||_1.

    Args:
        y: Measurements
        A: Forward operator (callable) or explicit matrix
        tau: Regularization weight
        AT: Adjoint operator; required when A is a callable
        tol: Tolerance for the stopping rule
        stop_criterion: StopCriterion (or its integer code)
        init: 0 (zeros), 1 (random), 2 (A^T y) or an initial array
        min_iters: Iterations always run before testing the stopping rule
        max_iters: Iteration cap
        monotone: Require the objective to decrease at every step
        safeguard: Non-monotone acceptance against the last
            ``safeguard_memory`` objective values (ignored if monotone)
        continuation: Solve for a decreasing sequence of tau values,
            warm-starting each from the previous one
        seed: Seed for ``init=1``
        verbose: Log per-iteration progress at DEBUG level

    Returns:
        SparsaResult. Reaching ``max_iters`` is not an error; the best
        iterate is returned with ``converged=False``.
    """
    if tau < 0:
        raise ValueError(f"tau must be non-negative, got {tau}")
    stop = StopCriterion(stop_criterion)
    A_fn, AT_fn = _as_operators(A, AT)

    Aty = AT_fn(y)
    x = _initial_x(init, Aty, np.random.default_rng(seed))

    # For tau >= max|A^T y| the zero vector is optimal
    max_tau = float(np.max(np.abs(Aty))) if Aty.size else 0.0
    if tau >= max_tau:
        x0 = np.zeros_like(Aty)
        logger.debug("tau=%.3e >= max|A^T y|=%.3e; returning zero solution", tau, max_tau)
        return SparsaResult(
            x=x0, objective=[0.5 * _sqnorm(y)], n_iterations=0, converged=True, tau=tau
        )

    kwargs = dict(
        tol=tol, stop=stop, min_iters=min_iters, max_iters=max_iters,
        monotone=monotone, safeguard=safeguard, memory=max(1, safeguard_memory),
        sigma=sigma, eta=eta, verbose=verbose,
    )

    taus = [tau]
    if continuation and continuation_steps > 1:
        first_tau = max(first_tau_factor * max_tau, tau)
        taus = list(np.geomspace(first_tau, tau, continuation_steps))

    objective: List[float] = []
    total_iters = 0
    converged = False
    for tau_k in taus:
        x, hist, iters, converged = _iterate(y, A_fn, AT_fn, float(tau_k), x, **kwargs)
        objective.extend(hist)
        total_iters += iters
        if verbose and len(taus) > 1:
            logger.debug("continuation tau=%.3e done in %d iterations", tau_k, iters)

    if not converged:
        logger.warning(
            "SpaRSA reached max_iters=%d without meeting tol=%.2e (%s)",
            max_iters, tol, stop.name,
        )

    return SparsaResult(
        x=x, objective=objective, n_iterations=total_iters, converged=converged, tau=tau
    )
