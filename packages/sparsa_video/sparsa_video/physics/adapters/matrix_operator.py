"""sparsa_video.physics.adapters.matrix_operator

Wrap an explicit matrix A as an operator with forward/adjoint.
Supports dense numpy arrays and scipy sparse matrices.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from sparsa_video.physics.base import BaseOperator


class MatrixOperator(BaseOperator):
    """Operator backed by an explicit matrix A of shape (M, prod(x_shape)).

    forward(x) = A @ x.ravel()
    adjoint(y) = (A^H @ y).reshape(x_shape)
    """

    def __init__(
        self,
        A: Any,
        x_shape: Optional[Tuple[int, ...]] = None,
        operator_id: Optional[str] = None,
    ):
        if sp.issparse(A):
            mat = sp.csr_matrix(A)
            default_id = "matrix_sparse"
        else:
            mat = np.asarray(A)
            default_id = "matrix_dense"
        if mat.ndim != 2:
            raise ValueError(f"Expected 2D matrix, got shape {mat.shape}")
        M, N = mat.shape
        x_shape = tuple(x_shape) if x_shape is not None else (N,)
        if int(np.prod(x_shape)) != N:
            raise ValueError(f"x_shape {x_shape} does not match {N} matrix columns")
        super().__init__(operator_id or default_id, x_shape, (M,))
        self.A = mat

    def forward(self, x: np.ndarray) -> np.ndarray:
        """Compute y = A @ x."""
        x_flat = np.asarray(x).reshape(-1)
        M, N = self.A.shape
        if x_flat.shape[0] != N:
            raise ValueError(
                f"Shape mismatch: A is ({M}, {N}) but x has {x_flat.shape[0]} elements"
            )
        return self.A @ x_flat

    def adjoint(self, y: np.ndarray) -> np.ndarray:
        """Compute x = A^H @ y."""
        y_flat = np.asarray(y).reshape(-1)
        M, N = self.A.shape
        if y_flat.shape[0] != M:
            raise ValueError(
                f"Shape mismatch: A^T is ({N}, {M}) but y has {y_flat.shape[0]} elements"
            )
        return (self.A.conj().T @ y_flat).reshape(self.x_shape)

    def info(self) -> Dict[str, Any]:
        info = super().info()
        info.update({"shape": list(self.A.shape), "sparse": sp.issparse(self.A)})
        return info
