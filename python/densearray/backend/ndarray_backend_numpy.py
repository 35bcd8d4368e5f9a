"""NumPy storage backend.

``Array`` is the flat storage buffer; the module-level kernels read and write
strided views of it. Kernels never allocate their outputs: callers pass a
destination ``Array`` sized for the result.
"""

import logging
from typing import Any, Callable

import numpy as np

from .dtypes import DType
from .errors import OutOfBoundsError

__device_name__ = "numpy"

logger = logging.getLogger(__name__)


class Array:
    """Flat, zero-initialized, fixed-capacity buffer of one element type."""

    def __init__(self, size: int, dtype: DType = DType.FLOAT64):
        if size < 0:
            raise ValueError(f"Negative buffer size: {size}")
        self.dtype = dtype
        self.buffer = np.zeros(size, dtype=dtype.numpy)
        logger.debug("Allocated %s buffer of %d elements", dtype, size)

    @property
    def size(self) -> int:
        return self.buffer.size

    def ptr(self) -> int:
        return self.buffer.ctypes.data

    def _check(self, offset: int) -> None:
        if not 0 <= offset < self.size:
            raise OutOfBoundsError(
                f"offset {offset} outside buffer of capacity {self.size}"
            )

    def read(self, offset: int) -> Any:
        """Return the element at ``offset`` as a Python scalar."""
        self._check(offset)
        return self.buffer[offset].item()

    def write(self, offset: int, value: Any) -> None:
        """Store ``value`` at ``offset``, converted to the buffer type."""
        self._check(offset)
        self.buffer[offset] = value

    def copy_range(
        self, src_offset: int, dst: "Array", dst_offset: int, count: int
    ) -> None:
        """Copy ``count`` contiguous elements into ``dst`` starting at ``dst_offset``.

        Both ranges are bound checked before anything is written.
        """
        if count < 0:
            raise ValueError(f"Negative element count: {count}")
        if count == 0:
            return
        self._check(src_offset)
        self._check(src_offset + count - 1)
        dst._check(dst_offset)
        dst._check(dst_offset + count - 1)
        dst.buffer[dst_offset : dst_offset + count] = self.buffer[
            src_offset : src_offset + count
        ]


def to_numpy(
    a: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> np.ndarray:
    """Create a NumPy view into ``a.buffer`` with custom shape/strides and offset.

    Parameters
    ----------
    a : Array
        Source storage.
    shape : tuple of int
        Desired shape of the returned view.
    strides : tuple of int
        Strides expressed in number of elements (not bytes).
    offset : int
        Starting element offset into ``a.buffer``.

    Returns
    -------
    numpy.ndarray
        A view (no copy) that shares memory with ``a.buffer``.
    """
    itemsize = a.buffer.itemsize
    return np.lib.stride_tricks.as_strided(
        a.buffer[offset:],
        shape,
        tuple(s * itemsize for s in strides),
    )


def from_numpy(numpy_array: np.ndarray, out: Array) -> None:
    """Copy values of ``numpy_array`` in row-major order into ``out``."""
    out.buffer[:] = numpy_array.flat


def fill(out: Array, val: Any) -> None:
    out.buffer.fill(val)


def compact(
    a: Array, out: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> None:
    """Materialize a strided view of ``a`` into the compact buffer ``out``."""
    out.buffer[:] = to_numpy(a, shape, strides, offset).reshape(-1)


def ewise_setitem(
    a: Array, out: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> None:
    """Write the compact buffer ``a`` through a strided view of ``out``."""
    to_numpy(out, shape, strides, offset)[...] = a.buffer.reshape(shape)


def scalar_setitem(
    val: Any,
    out: Array,
    shape: tuple[int, ...],
    strides: tuple[int, ...],
    offset: int,
) -> None:
    """Set every element of a strided view of ``out`` to ``val``."""
    to_numpy(out, shape, strides, offset)[...] = val


def mask_select(
    a: Array,
    out: Array,
    shape: tuple[int, ...],
    strides: tuple[int, ...],
    offset: int,
    index: tuple[Any, ...],
) -> None:
    """Copy the elements of a strided view selected by a NumPy ``index`` into ``out``.

    ``index`` is either a single boolean array covering the whole view or an
    open mesh of per-axis index arrays (see ``numpy.ix_``).
    """
    out.buffer[:] = to_numpy(a, shape, strides, offset)[index].reshape(-1)


def mask_setitem(
    val: Any,
    out: Array,
    shape: tuple[int, ...],
    strides: tuple[int, ...],
    offset: int,
    index: tuple[Any, ...],
) -> None:
    """Write ``val`` (scalar or array of the selection shape) through a selection."""
    to_numpy(out, shape, strides, offset)[index] = val


_BINARY: dict[str, Callable[..., Any]] = {
    "add": np.add,
    "subtract": np.subtract,
    "multiply": np.multiply,
    "divide": np.true_divide,
    "power": np.power,
    "maximum": np.maximum,
    "minimum": np.minimum,
    "eq": np.equal,
    "ne": np.not_equal,
    "lt": np.less,
    "le": np.less_equal,
    "gt": np.greater,
    "ge": np.greater_equal,
    "logical_and": np.logical_and,
    "logical_or": np.logical_or,
}

_UNARY: dict[str, Callable[..., Any]] = {
    "negative": np.negative,
    "abs": np.abs,
    "log": np.log,
    "exp": np.exp,
    "tanh": np.tanh,
    "sqrt": np.sqrt,
    "logical_not": np.logical_not,
}

BINARY_OPS = frozenset(_BINARY)
UNARY_OPS = frozenset(_UNARY)


def ewise(op: str, a: Array, b: Array, out: Array, dtype: DType) -> None:
    """Element-wise ``out = op(a, b)`` over compact buffers, computed in ``dtype``."""
    out.buffer[:] = _BINARY[op](
        a.buffer.astype(dtype.numpy, copy=False),
        b.buffer.astype(dtype.numpy, copy=False),
    )


def scalar(
    op: str, a: Array, val: Any, out: Array, dtype: DType, reflected: bool = False
) -> None:
    """Element-wise ``out = op(a, val)`` (or ``op(val, a)`` when ``reflected``)."""
    lhs = a.buffer.astype(dtype.numpy, copy=False)
    rhs = np.asarray(val, dtype=dtype.numpy)
    out.buffer[:] = _BINARY[op](rhs, lhs) if reflected else _BINARY[op](lhs, rhs)


def unary(op: str, a: Array, out: Array, dtype: DType) -> None:
    out.buffer[:] = _UNARY[op](a.buffer.astype(dtype.numpy, copy=False))


def matmul(a: Array, b: Array, out: Array, m: int, n: int, p: int) -> None:
    """Matrix multiplication ``out = (A @ B).ravel()`` with compact buffers.

    Both operands are converted to the output type first, so the dot products
    accumulate in the wider of the operand types.
    """
    dt = out.buffer.dtype
    out.buffer[:] = (
        a.buffer.astype(dt, copy=False).reshape(m, n)
        @ b.buffer.astype(dt, copy=False).reshape(n, p)
    ).reshape(-1)


_REDUCE: dict[str, Callable[..., Any]] = {
    "sum": np.sum,
    "max": np.max,
    "min": np.min,
    "mean": np.mean,
    "argmax": np.argmax,
    "argmin": np.argmin,
}


def reduce(op: str, a: Array, out: Array, reduce_size: int) -> None:
    """Reduce the last logical dimension of compact ``a``.

    ``a`` is read as ``(-1, reduce_size)``; ``out`` receives one value per row.
    """
    if reduce_size == 0:
        if op != "sum":
            raise ValueError(f"zero-size reduction has no identity for {op}")
        out.buffer[:] = 0
        return
    rows = a.buffer.reshape(-1, reduce_size)
    if op in ("sum", "mean"):
        # accumulate in the output type
        rows = rows.astype(out.buffer.dtype, copy=False)
    out.buffer[:] = _REDUCE[op](rows, axis=1)


def rand(out: Array, rng: np.random.Generator, low: float, high: float) -> None:
    """Fill ``out`` with uniform draws from ``[low, high)``."""
    out.buffer[:] = rng.uniform(low, high, out.size)


def randn(out: Array, rng: np.random.Generator, mean: float, std: float) -> None:
    """Fill ``out`` with normal draws of the given mean and standard deviation."""
    out.buffer[:] = rng.normal(mean, std, out.size)
