"""Shape descriptors: how a flat storage buffer is read as an N-D array."""

import math
from dataclasses import dataclass

import numpy as np

from .errors import OutOfBoundsError


@dataclass(frozen=True)
class Layout:
    """Affine map from a logical index to a storage offset.

    ``offset(i_0, ..., i_k) = offset + sum(i_d * strides[d])``. A vector is a
    layout of rank 1 and a matrix a layout of rank 2 whose strides are the row
    and column strides. Strides are in elements and may be zero (broadcast) or
    negative (reversed views).
    """

    shape: tuple[int, ...]
    strides: tuple[int, ...]
    offset: int = 0

    def __post_init__(self) -> None:
        if len(self.shape) != len(self.strides):
            raise ValueError(
                f"shape and strides must have the same length: "
                f"shape={self.shape}, strides={self.strides}"
            )
        if any(n < 0 for n in self.shape):
            raise ValueError(f"negative dimension in shape {self.shape}")

    @staticmethod
    def compact_strides(shape: tuple[int, ...]) -> tuple[int, ...]:
        """Row-major strides, in elements, for a compact array of ``shape``."""
        stride = 1
        strides = []
        for i in range(len(shape) - 1, -1, -1):
            strides.append(stride)
            stride *= shape[i]
        return tuple(reversed(strides))

    @classmethod
    def contiguous(cls, shape: tuple[int, ...], offset: int = 0) -> "Layout":
        return cls(tuple(shape), cls.compact_strides(tuple(shape)), offset)

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return math.prod(self.shape)

    def is_compact(self) -> bool:
        return self.strides == self.compact_strides(self.shape)

    def extent(self) -> tuple[int, int] | None:
        """Smallest and largest offset addressed, or None for an empty layout."""
        if self.size == 0:
            return None
        lo = hi = self.offset
        for n, s in zip(self.shape, self.strides):
            if s > 0:
                hi += (n - 1) * s
            else:
                lo += (n - 1) * s
        return lo, hi

    def check_bounds(self, capacity: int) -> None:
        """Raise ``OutOfBoundsError`` unless every offset is in ``[0, capacity)``."""
        ext = self.extent()
        if ext is None:
            return
        lo, hi = ext
        if lo < 0 or hi >= capacity:
            raise OutOfBoundsError(
                f"layout {self} addresses offsets [{lo}, {hi}] "
                f"outside buffer of capacity {capacity}"
            )

    def offsets(self) -> np.ndarray:
        """All offsets addressed, in row-major logical order."""
        out = np.full(self.shape, self.offset, dtype=np.int64)
        for axis, (n, s) in enumerate(zip(self.shape, self.strides)):
            idx_shape = [1] * self.ndim
            idx_shape[axis] = n
            out = out + (np.arange(n, dtype=np.int64) * s).reshape(idx_shape)
        return out.reshape(-1)

    def overlaps(self, other: "Layout") -> bool:
        """Whether the two layouts address at least one common offset."""
        a, b = self.extent(), other.extent()
        if a is None or b is None or a[1] < b[0] or b[1] < a[0]:
            return False
        return bool(np.intersect1d(self.offsets(), other.offsets()).size)

    def permute(self, axes: tuple[int, ...]) -> "Layout":
        if sorted(axes) != list(range(self.ndim)):
            raise ValueError(f"{axes} is not a permutation of {self.ndim} axes")
        return Layout(
            tuple(self.shape[i] for i in axes),
            tuple(self.strides[i] for i in axes),
            self.offset,
        )

    def broadcast_to(self, new_shape: tuple[int, ...]) -> "Layout":
        """Stretch singleton (or missing leading) axes with stride 0."""
        new_shape = tuple(new_shape)
        lead = len(new_shape) - self.ndim
        if lead < 0:
            raise ValueError(f"cannot broadcast shape {self.shape} to {new_shape}")
        shape = (1,) * lead + self.shape
        strides = (0,) * lead + self.strides
        for x, y in zip(shape, new_shape):
            if x != y and x != 1:
                raise ValueError(f"cannot broadcast shape {self.shape} to {new_shape}")
        return Layout(
            new_shape,
            tuple(0 if x != y else s for x, y, s in zip(shape, new_shape, strides)),
            self.offset,
        )
