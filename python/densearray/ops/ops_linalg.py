"""Linear algebra on vectors and matrices."""

import math
from typing import Any

from densearray.backend.errors import DimensionMismatchError
from densearray.backend.ndarray import NDArray


def matmul(a: NDArray, b: NDArray) -> Any:
    """Matrix product; see ``NDArray.__matmul__`` for the vector rules."""
    return a @ b


def dot(a: NDArray, b: NDArray) -> Any:
    """Inner product of two vectors (scalar), or a matrix product."""
    return a @ b


def transpose(a: NDArray) -> NDArray:
    """Transposed view of ``a``; no data is moved."""
    return a.transpose()


def outer(a: NDArray, b: NDArray) -> NDArray:
    """Outer product of two vectors: the ``(len(a), len(b))`` matrix ``a b^T``."""
    if a.ndim != 1 or b.ndim != 1:
        raise DimensionMismatchError(
            f"outer product needs two vectors, got shapes {a.shape} and {b.shape}"
        )
    return a.compact().reshape((a.shape[0], 1)) @ b.compact().reshape((1, b.shape[0]))


def norm(a: NDArray) -> float:
    """Euclidean (Frobenius for matrices) norm."""
    return math.sqrt((a * a).sum())
