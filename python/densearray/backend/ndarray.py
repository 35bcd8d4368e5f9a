import logging
import math
from typing import Any, Iterator, Union, cast

import numpy as np

from ..config import get_config
from . import dtypes
from .device import Device, default_device
from .dtypes import DType
from .errors import DimensionMismatchError, ShapeMismatchError
from .indexing import normalize_index, resolve
from .layout import Layout

logger = logging.getLogger(__name__)

Scalar = Union[bool, int, float]


class NDArray:
    """Dense N-dimensional array: a ``Layout`` bound to a storage buffer.

    Slicing with integers and ranges returns views that alias the storage of
    the array they were taken from: writes through either are visible through
    both. Boolean-mask indexing, ``to_owned`` and ``astype`` always produce an
    independently owned copy. Use ``shares_memory`` to check whether two
    arrays alias.
    """

    _layout: Layout
    _dtype: DType
    _device: Device
    _handle: Any

    def __init__(
        self, other: Any, device: Device | None = None, dtype: Any = None
    ) -> None:
        """Construct an NDArray from another NDArray, NumPy array, or array-like.

        Parameters
        ----------
        other : NDArray | numpy.ndarray | array_like
            Source to create from. Data are always copied.
        device : Device | None, optional
            Target device. If omitted and ``other`` is an NDArray, the other's
            device is used; otherwise the global default device is used.
        dtype : DType | str | numpy.dtype | None, optional
            Element type. If omitted it is taken from ``other``.
        """
        if isinstance(other, NDArray):
            if device is None:
                device = other.device
            source = other.to(device)
            self._init(source.to_owned() if dtype is None else source.astype(dtype))
        elif isinstance(other, np.ndarray):
            dt = DType.from_any(other.dtype if dtype is None else dtype)
            array = self.make(other.shape, device=device, dtype=dt)
            array.device.from_numpy(other, array._handle)
            self._init(array)
        else:
            self._init(NDArray(np.array(other), device=device, dtype=dtype))

    def _init(self, other: "NDArray") -> None:
        self._layout = other._layout
        self._dtype = other._dtype
        self._device = other._device
        self._handle = other._handle

    @staticmethod
    def compact_strides(shape: tuple[int, ...]) -> tuple[int, ...]:
        """Compute compact (row-major) strides for a shape."""
        return Layout.compact_strides(tuple(shape))

    @staticmethod
    def make(
        shape: tuple[int, ...],
        strides: tuple[int, ...] | None = None,
        device: Device | None = None,
        handle: Any = None,
        offset: int = 0,
        dtype: Any = None,
    ) -> "NDArray":
        """Create a new NDArray with explicit metadata and optional existing storage.

        Parameters
        ----------
        shape : tuple of int
            Desired logical shape.
        strides : tuple of int | None, optional
            Strides in elements. If None, compact strides are computed.
        device : Device | None, optional
            Target device. Defaults to the global default device.
        handle : Any, optional
            Existing storage buffer. If None, a zeroed buffer of
            ``prod(shape)`` elements is allocated.
        offset : int, optional
            Element offset into ``handle`` storage. Defaults to 0.
        dtype : DType | str | None, optional
            Element type of newly allocated storage. Ignored when ``handle``
            is given; defaults to the configured default type.

        Returns
        -------
        NDArray
            A new NDArray with the specified layout and storage.

        Raises
        ------
        OutOfBoundsError
            If the layout addresses offsets outside ``handle``.
        """
        shape = tuple(shape)
        layout = Layout(
            shape,
            Layout.compact_strides(shape) if strides is None else tuple(strides),
            offset,
        )
        array = NDArray.__new__(NDArray)
        array._layout = layout
        array._device = device if device is not None else default_device()
        if handle is None:
            dt = DType.from_any(get_config().default_dtype if dtype is None else dtype)
            array._handle = array.device.Array(layout.size, dt)
        else:
            layout.check_bounds(handle.size)
            array._handle = handle
        array._dtype = array._handle.dtype
        return array

    ### Properties and string representations
    @property
    def shape(self) -> tuple[int, ...]:
        """tuple[int, ...]: Logical shape of the array."""
        return self._layout.shape

    @property
    def strides(self) -> tuple[int, ...]:
        """tuple[int, ...]: Strides in elements for each dimension."""
        return self._layout.strides

    @property
    def offset(self) -> int:
        """int: Element offset of the first logical element in storage."""
        return self._layout.offset

    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def device(self) -> Device:
        """Device: The device on which this array's storage resides."""
        return self._device

    @property
    def dtype(self) -> DType:
        """DType: Element type of the underlying storage."""
        return self._dtype

    @property
    def ndim(self) -> int:
        return self._layout.ndim

    @property
    def size(self) -> int:
        """int: Total number of elements as the product of ``shape``."""
        return self._layout.size

    def __repr__(self) -> str:
        return f"NDArray({self}, dtype={self.dtype}, device={self.device})"

    def __str__(self) -> str:
        return np.array2string(self.numpy(), precision=get_config().print_precision)

    def __len__(self) -> int:
        if self.ndim == 0:
            raise TypeError("len() of a 0-d array")
        return self.shape[0]

    def __iter__(self) -> Iterator[Any]:
        for i in range(len(self)):
            yield self[i]

    def __bool__(self) -> bool:
        if self.size != 1:
            raise ValueError(
                f"truth value of an array with {self.size} elements is ambiguous"
            )
        return bool(self.numpy().reshape(-1)[0])

    # numpy defers binary operators to the reflected methods below
    __array_ufunc__ = None

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        out = self.numpy()
        return out if dtype is None else out.astype(dtype)

    ### Basic array manipulation
    def fill(self, value: Scalar) -> None:
        """Write ``value`` to every element addressed by this view."""
        self.device.scalar_setitem(
            value, self._handle, self.shape, self.strides, self.offset
        )

    def to(self, device: Device) -> "NDArray":
        """Return ``self`` if already on ``device``; otherwise a copy on ``device``."""
        if self.device == device:
            return self
        return NDArray(self.numpy(), device=device, dtype=self.dtype)

    def numpy(self) -> np.ndarray:
        """Return a NumPy view of this array sharing its storage."""
        return cast(
            np.ndarray,
            self.device.to_numpy(self._handle, self.shape, self.strides, self.offset),
        )

    def tolist(self) -> Any:
        return self.numpy().tolist()

    def is_compact(self) -> bool:
        """Return whether the array is compact in memory.

        The array is compact if its strides match compact row-major strides and
        the underlying storage size equals ``prod(shape)``.
        """
        return self._layout.is_compact() and self.size == self._handle.size

    def compact(self) -> "NDArray":
        """Return ``self`` if compact, otherwise a compact copy."""
        if self.is_compact():
            return self
        return self._materialize(self.dtype)

    def to_owned(self) -> "NDArray":
        """Return a compact copy that shares no storage with ``self``."""
        out = NDArray.make(self.shape, device=self.device, dtype=self.dtype)
        if self._layout.is_compact():
            self._handle.copy_range(self.offset, out._handle, 0, self.size)
        else:
            self.device.compact(
                self._handle, out._handle, self.shape, self.strides, self.offset
            )
        logger.debug(
            "Materialized %s %s view into owned storage", self.shape, self.dtype
        )
        return out

    def astype(self, dtype: Any) -> "NDArray":
        """Return an owned copy converted to ``dtype``."""
        return self._materialize(DType.from_any(dtype))

    def _materialize(self, dtype: DType) -> "NDArray":
        out = NDArray.make(self.shape, device=self.device, dtype=dtype)
        self.device.compact(
            self._handle, out._handle, self.shape, self.strides, self.offset
        )
        logger.debug("Compacted %s view into new %s storage", self.shape, dtype)
        return out

    def shares_memory(self, other: "NDArray") -> bool:
        """Whether ``self`` and ``other`` address a common storage element."""
        return self._handle is other._handle and self._layout.overlaps(other._layout)

    def as_strided(self, shape: tuple[int, ...], strides: tuple[int, ...]) -> "NDArray":
        """Create a new view with given shape and strides (no data copy)."""
        return NDArray.make(
            shape,
            strides=strides,
            device=self.device,
            handle=self._handle,
            offset=self.offset,
        )

    def _view(self, layout: Layout) -> "NDArray":
        return NDArray.make(
            layout.shape, layout.strides, self.device, self._handle, layout.offset
        )

    @property
    def flat(self) -> "NDArray":
        """NDArray: A view of the array flattened to 1-D."""
        return self.reshape((self.size,))

    def reshape(self, new_shape: tuple[int, ...]) -> "NDArray":
        """Reshape to ``new_shape`` without copying memory.

        Raises
        ------
        ValueError
            If the size changes or if the array is not compact.
        """
        if math.prod(self.shape) != math.prod(new_shape):
            raise ValueError(
                f"cannot reshape array of size {self.size} into shape {new_shape}"
            )
        if not self.is_compact():
            raise ValueError("Array must be compact to reshape")
        return self._view(Layout.contiguous(tuple(new_shape), self.offset))

    def permute(self, new_axes: tuple[int, ...]) -> "NDArray":
        """Permute dimensions according to ``new_axes`` without copying memory."""
        return self._view(self._layout.permute(tuple(new_axes)))

    def transpose(self, axes: tuple[int, ...] | None = None) -> "NDArray":
        """Swap row and column strides (reverse all axes); no data moves.

        A vector is its own transpose.
        """
        if axes is None:
            axes = tuple(reversed(range(self.ndim)))
        return self.permute(axes)

    @property
    def T(self) -> "NDArray":
        return self.transpose()

    def broadcast_to(self, new_shape: tuple[int, ...]) -> "NDArray":
        """Broadcast to ``new_shape`` by adjusting strides (no copy).

        Singleton axes are stretched with stride 0 and missing leading axes are
        added, so a vector of length ``n`` broadcasts to ``(m, n)``.

        Raises
        ------
        ValueError
            If a non-singleton dimension would change.
        """
        return self._view(self._layout.broadcast_to(tuple(new_shape)))

    ### Get and set elements
    def __getitem__(self, idxs: Any) -> Any:
        """Index with integers, ranges, steps, full ranges or boolean masks.

        Parameters
        ----------
        idxs : int | slice | mask | tuple
            One expression per axis; trailing axes default to the full range.

        Returns
        -------
        NDArray | scalar
            A Python scalar when every axis is indexed by an integer, a view
            sharing storage for integer/range expressions, or an owned copy
            when a boolean mask is involved.
        """
        res = resolve(self._layout, idxs)
        layout = res.layout
        if res.is_scalar:
            return self._handle.read(layout.offset)
        if res.is_view:
            return self._view(layout)

        out = NDArray.make(res.shape, device=self.device, dtype=self.dtype)
        self.device.mask_select(
            self._handle,
            out._handle,
            layout.shape,
            layout.strides,
            layout.offset,
            res.selection,
        )
        logger.debug("Mask selection copied %d of %d elements", out.size, layout.size)
        return out

    def at(self, *idxs: Any) -> Any:
        """Named form of indexing: ``m.at(i, j)`` is ``m[i, j]``."""
        return self[idxs[0] if len(idxs) == 1 else idxs]

    def __setitem__(self, idxs: Any, other: Any) -> None:
        """Write ``other`` in place through the elements selected by ``idxs``.

        Parameters
        ----------
        idxs : int | slice | mask | tuple
            Indexing specification (same semantics as ``__getitem__``); masks
            write through to this array.
        other : NDArray | scalar | array_like
            A scalar is broadcast; arrays must match the selected shape. A
            source overlapping the destination is copied before writing.

        Raises
        ------
        ShapeMismatchError
            If ``other`` has a different shape from the selection.
        """
        res = resolve(self._layout, idxs)
        layout = res.layout
        if dtypes.is_scalar(other):
            if res.is_scalar:
                self._handle.write(layout.offset, other)
            elif res.is_view:
                self.device.scalar_setitem(
                    other, self._handle, layout.shape, layout.strides, layout.offset
                )
            else:
                self.device.mask_setitem(
                    other,
                    self._handle,
                    layout.shape,
                    layout.strides,
                    layout.offset,
                    res.selection,
                )
            return

        if not isinstance(other, NDArray):
            other = NDArray(other, device=self.device)
        if other.shape != res.shape:
            raise ShapeMismatchError(
                f"cannot assign array of shape {other.shape} "
                f"to selection of shape {res.shape}"
            )
        if other._handle is self._handle and (
            not res.is_view or layout.overlaps(other._layout)
        ):
            logger.debug("Assignment source overlaps destination; buffering the read")
            other = other.to_owned()

        if res.is_view:
            self.device.ewise_setitem(
                other.compact()._handle,
                self._handle,
                layout.shape,
                layout.strides,
                layout.offset,
            )
        else:
            self.device.mask_setitem(
                other.numpy(),
                self._handle,
                layout.shape,
                layout.strides,
                layout.offset,
                res.selection,
            )

    def assign(self, idxs: Any, value: Any) -> "NDArray":
        """Named form of assignment; returns ``self`` for chaining."""
        self[idxs] = value
        return self

    ### Element-wise and scalar operations
    def _binary(self, other: Any, op: str, reflected: bool = False) -> "NDArray":
        """Apply a binary backend operation against an array or a scalar.

        Result and compute types follow the rules in ``dtypes``: arithmetic in
        the promoted type, true division in a float type, comparisons in the
        promoted type yielding ``bool``, logical ops on ``bool`` only.
        """
        if isinstance(other, (list, tuple, np.ndarray)):
            other = NDArray(other, device=self.device)

        if isinstance(other, NDArray):
            if self.shape != other.shape:
                raise ShapeMismatchError(
                    f"{op} needs equal shapes, got {self.shape} and {other.shape}"
                )
            compute = dtypes.promote(self.dtype, other.dtype)
        elif dtypes.is_scalar(other):
            if op in _COMPARISONS or op in _LOGICAL:
                compute = dtypes.comparison_scalar_type(self.dtype, other)
            else:
                compute = dtypes.scalar_type(self.dtype, other)
        else:
            return NotImplemented

        if op in _LOGICAL:
            if compute is not DType.BOOL:
                raise TypeError(f"{op} needs boolean operands")
            result = DType.BOOL
        elif op in _COMPARISONS:
            result = DType.BOOL
        elif op == "divide":
            compute = result = dtypes.division_type(compute)
        else:
            compute = result = dtypes.arithmetic_type(compute)

        out = NDArray.make(self.shape, device=self.device, dtype=result)
        if isinstance(other, NDArray):
            lhs, rhs = (other, self) if reflected else (self, other)
            self.device.ewise(
                op, lhs.compact()._handle, rhs.compact()._handle, out._handle, compute
            )
        else:
            self.device.scalar(
                op, self.compact()._handle, other, out._handle, compute, reflected
            )
        return out

    def _unary(self, op: str) -> "NDArray":
        if op == "logical_not":
            if self.dtype is not DType.BOOL:
                raise TypeError("logical not needs a boolean operand")
            compute = DType.BOOL
        elif op in ("negative", "abs"):
            compute = dtypes.arithmetic_type(self.dtype)
        else:
            compute = dtypes.division_type(self.dtype)
        out = NDArray.make(self.shape, device=self.device, dtype=compute)
        self.device.unary(op, self.compact()._handle, out._handle, compute)
        return out

    def add(self, other: Any) -> "NDArray":
        return self._binary(other, "add")

    def subtract(self, other: Any) -> "NDArray":
        return self._binary(other, "subtract")

    def multiply(self, other: Any) -> "NDArray":
        """Element-wise (Hadamard) product, or scaling by a scalar."""
        return self._binary(other, "multiply")

    def divide(self, other: Any) -> "NDArray":
        return self._binary(other, "divide")

    def power(self, other: Any) -> "NDArray":
        return self._binary(other, "power")

    def maximum(self, other: Any) -> "NDArray":
        return self._binary(other, "maximum")

    def minimum(self, other: Any) -> "NDArray":
        return self._binary(other, "minimum")

    def __add__(self, other: Any) -> "NDArray":
        return self._binary(other, "add")

    def __radd__(self, other: Any) -> "NDArray":
        return self._binary(other, "add", reflected=True)

    def __sub__(self, other: Any) -> "NDArray":
        return self._binary(other, "subtract")

    def __rsub__(self, other: Any) -> "NDArray":
        return self._binary(other, "subtract", reflected=True)

    def __mul__(self, other: Any) -> "NDArray":
        return self._binary(other, "multiply")

    def __rmul__(self, other: Any) -> "NDArray":
        return self._binary(other, "multiply", reflected=True)

    def __truediv__(self, other: Any) -> "NDArray":
        return self._binary(other, "divide")

    def __rtruediv__(self, other: Any) -> "NDArray":
        return self._binary(other, "divide", reflected=True)

    def __pow__(self, other: Any) -> "NDArray":
        return self._binary(other, "power")

    def __rpow__(self, other: Any) -> "NDArray":
        return self._binary(other, "power", reflected=True)

    def __neg__(self) -> "NDArray":
        return self._unary("negative")

    def __abs__(self) -> "NDArray":
        return self._unary("abs")

    def log(self) -> "NDArray":
        return self._unary("log")

    def exp(self) -> "NDArray":
        return self._unary("exp")

    def tanh(self) -> "NDArray":
        return self._unary("tanh")

    def sqrt(self) -> "NDArray":
        return self._unary("sqrt")

    ### Comparisons and logical operations, all producing masks
    def __eq__(self, other: Any) -> "NDArray":  # type: ignore[override]
        return self._binary(other, "eq")

    def __ne__(self, other: Any) -> "NDArray":  # type: ignore[override]
        return self._binary(other, "ne")

    def __lt__(self, other: Any) -> "NDArray":
        return self._binary(other, "lt")

    def __le__(self, other: Any) -> "NDArray":
        return self._binary(other, "le")

    def __gt__(self, other: Any) -> "NDArray":
        return self._binary(other, "gt")

    def __ge__(self, other: Any) -> "NDArray":
        return self._binary(other, "ge")

    __hash__ = None  # type: ignore[assignment]

    def __and__(self, other: Any) -> "NDArray":
        return self._binary(other, "logical_and")

    __rand__ = __and__

    def __or__(self, other: Any) -> "NDArray":
        return self._binary(other, "logical_or")

    __ror__ = __or__

    def __invert__(self) -> "NDArray":
        return self._unary("logical_not")

    ### Matrix multiplication
    def __matmul__(self, other: "NDArray") -> Any:
        """Matrix product of vectors and matrices.

        A matrix times a vector treats the vector as a column and yields a
        vector of length ``rows``; a vector times a matrix treats it as a row.
        Two vectors give their dot product as a scalar. The product is computed
        in the promoted type of the operands into fresh storage.

        Raises
        ------
        DimensionMismatchError
            If an operand has rank above 2 or the inner dimensions differ.
        """
        if not isinstance(other, NDArray):
            return NotImplemented
        if self.ndim not in (1, 2) or other.ndim not in (1, 2):
            raise DimensionMismatchError(
                f"matrix product needs vectors or matrices, "
                f"got shapes {self.shape} and {other.shape}"
            )
        a = self if self.ndim == 2 else self.compact().reshape((1, self.shape[0]))
        b = other if other.ndim == 2 else other.compact().reshape((other.shape[0], 1))
        if a.shape[1] != b.shape[0]:
            raise DimensionMismatchError(
                f"matrix product of shapes {self.shape} and {other.shape}: "
                f"inner dimensions {a.shape[1]} and {b.shape[0]} differ"
            )

        m, n, p = a.shape[0], a.shape[1], b.shape[1]
        dtype = dtypes.arithmetic_type(dtypes.promote(self.dtype, other.dtype))
        out = NDArray.make((m, p), device=self.device, dtype=dtype)
        logger.debug("matmul (%dx%d) @ (%dx%d) in %s", m, n, n, p, dtype)
        self.device.matmul(
            a.compact()._handle, b.compact()._handle, out._handle, m, n, p
        )

        if self.ndim == 1 and other.ndim == 1:
            return out._handle.read(0)
        if self.ndim == 1:
            return out.reshape((p,))
        if other.ndim == 1:
            return out.reshape((m,))
        return out

    def matmul(self, other: "NDArray") -> Any:
        return self.__matmul__(other)

    dot = matmul

    ### Reductions, i.e., sum/max over all element or over a given axis
    def reduce_view_out(
        self, axis: int | tuple[int, ...] | list[int], keepdims: bool, dtype: DType
    ) -> tuple["NDArray", "NDArray"]:
        """Prepare a reduction view and the corresponding output array.

        Parameters
        ----------
        axis : int | tuple[int, ...] | list[int]
            Axis to reduce over. Only a single axis is supported.
        keepdims : bool
            If True, keep the reduced dimension with size 1.
        dtype : DType
            Element type of the output.

        Returns
        -------
        tuple[NDArray, NDArray]
            ``(view, out)`` where ``view`` is permuted so that the reduced axis
            comes last.
        """
        if isinstance(axis, (tuple, list)):
            if len(axis) != 1:
                raise ValueError("Only support reduction over a single axis")
            axis = axis[0]
        axis = normalize_index(axis, self.ndim, 0)

        view = self.permute(tuple(a for a in range(self.ndim) if a != axis) + (axis,))
        out = NDArray.make(
            tuple(1 if i == axis else s for i, s in enumerate(self.shape))
            if keepdims
            else tuple(s for i, s in enumerate(self.shape) if i != axis),
            device=self.device,
            dtype=dtype,
        )
        return view, out

    def _reduce(
        self,
        op: str,
        dtype: DType,
        axis: int | tuple[int, ...] | list[int] | None,
        keepdims: bool,
    ) -> Any:
        if axis is None:
            out = NDArray.make((1,), device=self.device, dtype=dtype)
            self.device.reduce(op, self.compact()._handle, out._handle, self.size)
            return out._handle.read(0)
        view, out = self.reduce_view_out(axis, keepdims, dtype)
        self.device.reduce(op, view.compact()._handle, out._handle, view.shape[-1])
        return out

    def sum(
        self, axis: int | tuple[int, ...] | list[int] | None = None, keepdims: bool = False
    ) -> Any:
        """Sum over all elements (a scalar) or over one axis (an array).

        ``bool`` and ``int32`` inputs accumulate in ``int64``.
        """
        return self._reduce("sum", dtypes.sum_type(self.dtype), axis, keepdims)

    def max(
        self, axis: int | tuple[int, ...] | list[int] | None = None, keepdims: bool = False
    ) -> Any:
        """Maximum over all elements or over one axis."""
        return self._reduce("max", self.dtype, axis, keepdims)

    def min(
        self, axis: int | tuple[int, ...] | list[int] | None = None, keepdims: bool = False
    ) -> Any:
        return self._reduce("min", self.dtype, axis, keepdims)

    def mean(
        self, axis: int | tuple[int, ...] | list[int] | None = None, keepdims: bool = False
    ) -> Any:
        return self._reduce("mean", dtypes.mean_type(self.dtype), axis, keepdims)

    def argmax(self, axis: int | None = None) -> Any:
        """Position of the maximum; over all elements it is a row-major index."""
        return self._reduce("argmax", DType.INT64, axis, False)

    def argmin(self, axis: int | None = None) -> Any:
        return self._reduce("argmin", DType.INT64, axis, False)


_COMPARISONS = frozenset(("eq", "ne", "lt", "le", "gt", "ge"))
_LOGICAL = frozenset(("logical_and", "logical_or"))


def array(a: Any, dtype: Any = None, device: Device | None = None) -> NDArray:
    """Convenience methods to match numpy a bit more closely."""
    return NDArray(a, device=device, dtype=dtype)
