"""Element-wise operations as named functions.

Each function accepts arrays or scalars on either side. Array operands must
share a shape (``ShapeMismatchError`` otherwise); a scalar operand is applied
to every element without being materialized.
"""

from typing import Any

import numpy as np

from densearray.backend.dtypes import (
    DType,
    comparison_scalar_type,
    is_scalar,
    promote,
)
from densearray.backend.errors import ShapeMismatchError
from densearray.backend.ndarray import NDArray


def _binary(a: Any, b: Any, op: str) -> NDArray:
    if isinstance(a, NDArray):
        out = a._binary(b, op)
    elif isinstance(b, NDArray):
        out = b._binary(a, op, reflected=True)
    else:
        out = NDArray(a)._binary(b, op)
    if out is NotImplemented:
        raise TypeError(
            f"unsupported operand types for {op}: "
            f"{type(a).__name__} and {type(b).__name__}"
        )
    return out


def _as_array(a: Any) -> NDArray:
    return a if isinstance(a, NDArray) else NDArray(a)


def add(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "add")


def subtract(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "subtract")


def multiply_elementwise(a: Any, b: Any) -> NDArray:
    """Hadamard product; with a scalar operand, scaling."""
    return _binary(a, b, "multiply")


multiply = multiply_elementwise


def divide(a: Any, b: Any) -> NDArray:
    """True division; the result always has a float type."""
    return _binary(a, b, "divide")


def power(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "power")


def maximum(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "maximum")


def minimum(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "minimum")


def equal(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "eq")


def not_equal(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "ne")


def less(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "lt")


def less_equal(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "le")


def greater(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "gt")


def greater_equal(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "ge")


def logical_and(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "logical_and")


def logical_or(a: Any, b: Any) -> NDArray:
    return _binary(a, b, "logical_or")


def logical_not(a: Any) -> NDArray:
    return ~_as_array(a)


def negative(a: Any) -> NDArray:
    return -_as_array(a)


def log(a: Any) -> NDArray:
    return _as_array(a).log()


def exp(a: Any) -> NDArray:
    return _as_array(a).exp()


def tanh(a: Any) -> NDArray:
    return _as_array(a).tanh()


def sqrt(a: Any) -> NDArray:
    return _as_array(a).sqrt()


def _operand_type(x: Any) -> DType:
    if isinstance(x, NDArray):
        return x.dtype
    if isinstance(x, (bool, np.bool_)):
        return DType.BOOL
    return DType.FLOAT64 if isinstance(x, (float, np.floating)) else DType.INT64


def where(mask: NDArray, a: Any, b: Any) -> NDArray:
    """Take ``a`` where ``mask`` is true and ``b`` elsewhere.

    ``a`` and ``b`` are arrays of the mask's shape or scalars. The result is a
    new array; a scalar next to an array keeps the array's type where possible.
    """
    if mask.dtype is not DType.BOOL:
        raise TypeError(f"where needs a boolean mask, got {mask.dtype}")
    a = a if is_scalar(a) else _as_array(a)
    b = b if is_scalar(b) else _as_array(b)
    for x in (a, b):
        if isinstance(x, NDArray) and x.shape != mask.shape:
            raise ShapeMismatchError(
                f"where operand of shape {x.shape} does not match mask {mask.shape}"
            )

    if isinstance(a, NDArray) and not isinstance(b, NDArray):
        dtype = comparison_scalar_type(a.dtype, b)
    elif isinstance(b, NDArray) and not isinstance(a, NDArray):
        dtype = comparison_scalar_type(b.dtype, a)
    else:
        dtype = promote(_operand_type(a), _operand_type(b))

    out = NDArray.make(mask.shape, device=mask.device, dtype=dtype)
    out[mask] = a[mask] if isinstance(a, NDArray) else a
    inverse = ~mask
    out[inverse] = b[inverse] if isinstance(b, NDArray) else b
    return out
