"""Index resolution.

Turns index expressions (integers, ranges, stepped ranges, full ranges and
boolean masks) into either a derived ``Layout`` over the same storage or a
selection that has to be copied out. Nothing here touches storage.
"""

import operator
from dataclasses import dataclass
from typing import Any

import numpy as np

from .dtypes import DType
from .errors import (
    IndexOutOfRangeError,
    InvalidRangeError,
    InvalidStepError,
    MaskLengthMismatchError,
)
from .layout import Layout


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving an index expression against a layout.

    Attributes
    ----------
    layout : Layout
        Affine part of the expression. Integer-indexed axes are dropped;
        masked axes are kept at full extent.
    selection : tuple | None
        NumPy index applied on top of ``layout`` when masks are involved.
        ``None`` means the result aliases storage through ``layout``.
    shape : tuple of int
        Logical shape of the result.
    """

    layout: Layout
    selection: tuple[Any, ...] | None
    shape: tuple[int, ...]

    @property
    def is_scalar(self) -> bool:
        return self.selection is None and self.layout.ndim == 0

    @property
    def is_view(self) -> bool:
        return self.selection is None


def normalize_index(i: Any, length: int, axis: int = 0) -> int:
    """Resolve a possibly negative scalar index along an axis of ``length``."""
    idx = operator.index(i)
    resolved = idx + length if idx < 0 else idx
    if not 0 <= resolved < length:
        raise IndexOutOfRangeError(
            f"index {idx} is out of range for axis {axis} with length {length}"
        )
    return resolved


def _bound(i: Any, length: int) -> int:
    idx = operator.index(i)
    return idx + length if idx < 0 else idx


def process_slice(sl: slice, length: int, axis: int = 0) -> tuple[int, int, int]:
    """Resolve a slice into ``(start, count, step)``.

    Bounds are never clamped: a bound outside the axis, or a range running
    against its step, raises ``InvalidRangeError``.
    """
    step = 1 if sl.step is None else operator.index(sl.step)
    if step == 0:
        raise InvalidStepError(f"slice step cannot be zero (axis {axis})")

    if step > 0:
        start = 0 if sl.start is None else _bound(sl.start, length)
        stop = length if sl.stop is None else _bound(sl.stop, length)
        if not (0 <= start <= length and 0 <= stop <= length):
            raise InvalidRangeError(
                f"range [{sl.start}, {sl.stop}) exceeds axis {axis} with length {length}"
            )
        if start > stop:
            raise InvalidRangeError(
                f"range start {start} is past stop {stop} on axis {axis}"
            )
        count = (stop - start + step - 1) // step
    else:
        # a stop of -1 means "before the first element"
        start = length - 1 if sl.start is None else _bound(sl.start, length)
        stop = -1 if sl.stop is None else _bound(sl.stop, length)
        if start < stop:
            raise InvalidRangeError(
                f"reversed range needs start >= stop, got {start} < {stop} "
                f"on axis {axis}"
            )
        if stop < -1 or start >= length or (start < 0 and start != stop):
            raise InvalidRangeError(
                f"range [{sl.start}, {sl.stop}) exceeds axis {axis} with length {length}"
            )
        count = (start - stop - step - 1) // -step

    if count == 0:
        start = 0
    return start, count, step


def as_mask(idx: Any) -> np.ndarray | None:
    """Return ``idx`` as a NumPy boolean array if it is a mask, else None."""
    if hasattr(idx, "numpy") and isinstance(getattr(idx, "dtype", None), DType):
        if idx.dtype is not DType.BOOL:
            raise TypeError(f"only boolean arrays can be used as indices, got {idx.dtype}")
        return np.asarray(idx.numpy(), dtype=bool)
    if isinstance(idx, np.ndarray):
        if idx.dtype != np.bool_:
            raise TypeError(f"only boolean arrays can be used as indices, got {idx.dtype}")
        return idx
    if isinstance(idx, list) and idx and all(isinstance(x, (bool, np.bool_)) for x in idx):
        return np.array(idx, dtype=bool)
    return None


def _is_integer(idx: Any) -> bool:
    return isinstance(idx, (int, np.integer)) and not isinstance(idx, (bool, np.bool_))


def resolve(layout: Layout, idxs: Any) -> Resolution:
    """Resolve an index expression against ``layout``.

    Parameters
    ----------
    layout : Layout
        Layout being indexed.
    idxs : int | slice | mask | tuple
        One expression per axis; missing trailing axes take the full range. A
        single mask with the full shape of ``layout`` selects elements in
        row-major order.

    Returns
    -------
    Resolution
        A view layout, or a layout plus selection for masked expressions.
    """
    if not isinstance(idxs, tuple):
        mask = as_mask(idxs)
        if mask is not None and mask.ndim == layout.ndim and mask.ndim > 1:
            if mask.shape != layout.shape:
                raise MaskLengthMismatchError(
                    f"mask of shape {mask.shape} does not match array shape {layout.shape}"
                )
            return Resolution(layout, (mask,), (int(mask.sum()),))
        idxs = (idxs,)

    if len(idxs) > layout.ndim:
        raise IndexOutOfRangeError(
            f"too many indices: {len(idxs)} given for array of rank {layout.ndim}"
        )
    idxs = idxs + (slice(None),) * (layout.ndim - len(idxs))

    offset = layout.offset
    shape: list[int] = []
    strides: list[int] = []
    masks: dict[int, np.ndarray] = {}
    for axis, (idx, n, s) in enumerate(zip(idxs, layout.shape, layout.strides)):
        if _is_integer(idx):
            offset += normalize_index(idx, n, axis) * s
        elif isinstance(idx, slice):
            start, count, step = process_slice(idx, n, axis)
            offset += start * s
            shape.append(count)
            strides.append(s * step)
        else:
            mask = as_mask(idx)
            if mask is None:
                raise TypeError(f"unsupported index {idx!r} on axis {axis}")
            if mask.ndim != 1 or mask.shape[0] != n:
                raise MaskLengthMismatchError(
                    f"mask of shape {mask.shape} does not match axis {axis} "
                    f"with length {n}"
                )
            masks[len(shape)] = mask
            shape.append(n)
            strides.append(s)

    view = Layout(tuple(shape), tuple(strides), offset)
    if not masks:
        return Resolution(view, None, view.shape)

    axes = [
        np.flatnonzero(masks[k]) if k in masks else np.arange(n)
        for k, n in enumerate(view.shape)
    ]
    return Resolution(view, np.ix_(*axes), tuple(len(a) for a in axes))
