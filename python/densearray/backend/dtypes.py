"""Closed set of element types and the conversion rules between them.

Supported types are ``bool`` (masks), ``int32``, ``int64``, ``float32`` and
``float64``. Binary operations never rely on implicit NumPy promotion; the
result type is computed here and operands are cast to it explicitly.
"""

from enum import Enum
from typing import Any

import numpy as np


class DType(Enum):
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    def __str__(self) -> str:
        return self.value

    @property
    def numpy(self) -> np.dtype:
        """numpy.dtype: NumPy dtype used for storage."""
        return np.dtype(self.value)

    @property
    def itemsize(self) -> int:
        return self.numpy.itemsize

    @property
    def is_bool(self) -> bool:
        return self is DType.BOOL

    @property
    def is_integer(self) -> bool:
        return self in (DType.INT32, DType.INT64)

    @property
    def is_float(self) -> bool:
        return self in (DType.FLOAT32, DType.FLOAT64)

    @staticmethod
    def from_any(value: Any) -> "DType":
        """Coerce a ``DType``, a type name or a NumPy dtype into a ``DType``.

        Parameters
        ----------
        value : DType | str | numpy.dtype | type
            Element type specification.

        Returns
        -------
        DType
            The matching member of the closed set.

        Raises
        ------
        TypeError
            If the type has no counterpart in the closed set.
        """
        if isinstance(value, DType):
            return value
        if isinstance(value, str):
            try:
                return DType(value)
            except ValueError:
                pass
        try:
            np_dtype = np.dtype(value)
        except TypeError as e:
            raise TypeError(f"Unsupported element type: {value!r}") from e
        return _from_numpy(np_dtype)


def _from_numpy(np_dtype: np.dtype) -> DType:
    kind, size = np_dtype.kind, np_dtype.itemsize
    if kind == "b":
        return DType.BOOL
    if kind == "i":
        return DType.INT32 if size <= 4 else DType.INT64
    if kind == "u":
        return DType.INT32 if size <= 2 else DType.INT64
    if kind == "f" and size <= 8:
        return DType.FLOAT32 if size <= 4 else DType.FLOAT64
    raise TypeError(f"Unsupported element type: {np_dtype}")


# Symmetric table for distinct non-bool pairs.
_PROMOTIONS = {
    frozenset((DType.INT32, DType.INT64)): DType.INT64,
    frozenset((DType.INT32, DType.FLOAT32)): DType.FLOAT64,
    frozenset((DType.INT64, DType.FLOAT32)): DType.FLOAT64,
    frozenset((DType.INT32, DType.FLOAT64)): DType.FLOAT64,
    frozenset((DType.INT64, DType.FLOAT64)): DType.FLOAT64,
    frozenset((DType.FLOAT32, DType.FLOAT64)): DType.FLOAT64,
}


def promote(a: DType, b: DType) -> DType:
    """Return the narrowest type that holds both ``a`` and ``b`` values.

    Integers combined with ``float32`` widen to ``float64`` since ``float32``
    cannot represent every ``int32``.
    """
    if a is b:
        return a
    if a.is_bool:
        return b
    if b.is_bool:
        return a
    return _PROMOTIONS[frozenset((a, b))]


def arithmetic_type(dtype: DType) -> DType:
    """Type in which arithmetic on ``dtype`` operands is carried out."""
    return DType.INT64 if dtype.is_bool else dtype


def _fits(value: int, dtype: DType) -> bool:
    info = np.iinfo(dtype.numpy)
    return int(info.min) <= value <= int(info.max)


def scalar_type(dtype: DType, value: Any) -> DType:
    """Type of combining an array of ``dtype`` with a Python scalar.

    Scalars are weak: they keep the array type unless a float meets an
    integer or bool array, or an integer does not fit the array's integer
    type. Such integers widen to ``int64``, or to ``float64`` beyond it.
    """
    if isinstance(value, (float, np.floating)):
        return dtype if dtype.is_float else DType.FLOAT64
    if isinstance(value, (bool, np.bool_)):
        return arithmetic_type(dtype)
    if isinstance(value, (int, np.integer)):
        base = arithmetic_type(dtype)
        if base.is_float or _fits(int(value), base):
            return base
        return DType.INT64 if _fits(int(value), DType.INT64) else DType.FLOAT64
    raise TypeError(f"Unsupported scalar operand: {value!r}")


def comparison_scalar_type(dtype: DType, value: Any) -> DType:
    """Type in which an array of ``dtype`` is compared against a scalar."""
    if isinstance(value, (float, np.floating)):
        return dtype if dtype.is_float else DType.FLOAT64
    if isinstance(value, (bool, np.bool_)) and dtype.is_bool:
        return DType.BOOL
    return scalar_type(dtype, value)


def division_type(dtype: DType) -> DType:
    """True division always produces a float type."""
    return DType.FLOAT32 if dtype is DType.FLOAT32 else DType.FLOAT64


def sum_type(dtype: DType) -> DType:
    """Accumulator type of ``sum``."""
    return DType.INT64 if dtype in (DType.BOOL, DType.INT32) else dtype


def mean_type(dtype: DType) -> DType:
    return DType.FLOAT32 if dtype is DType.FLOAT32 else DType.FLOAT64


def is_scalar(value: Any) -> bool:
    """Whether ``value`` is a Python or NumPy scalar usable as an operand."""
    return isinstance(value, (bool, int, float, np.bool_, np.integer, np.floating))
