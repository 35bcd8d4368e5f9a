from typing import Any, Callable, Optional, Union

import numpy as np

from densearray.backend.device import Device
from densearray.backend.dtypes import DType
from densearray.backend.ndarray import NDArray
from densearray.config import get_config

ShapeLike = Union[int, tuple[int, ...]]

_rng: Optional[np.random.Generator] = None


def _shape(shape: tuple[Any, ...]) -> tuple[int, ...]:
    # accept both zeros(2, 3) and zeros((2, 3))
    if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
        return tuple(shape[0])
    return tuple(shape)


def seed(value: Optional[int] = None) -> None:
    """Reseed the global generator used by ``rand`` and ``randn``."""
    global _rng
    _rng = np.random.default_rng(value)


def get_rng() -> np.random.Generator:
    """Global PCG64 generator, seeded from the configuration on first use."""
    global _rng
    if _rng is None:
        _rng = np.random.default_rng(get_config().seed)
    return _rng


def _float_dtype(dtype: Any) -> DType:
    if dtype is None:
        # an integer default only applies to the integer-capable constructors
        default = get_config().default_dtype
        return default if default.is_float else DType.FLOAT64
    dt = DType.from_any(dtype)
    if not dt.is_float:
        raise TypeError(f"expected a float type, got {dt}")
    return dt


def rand(
    *shape: Any,
    low: float = 0.0,
    high: float = 1.0,
    device: Optional[Device] = None,
    dtype: Any = None,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """Generate random numbers uniform in ``[low, high)``.

    Draws come from NumPy's PCG64 ``Generator``; pass ``rng`` to use a private
    generator instead of the global one.
    """
    out = NDArray.make(_shape(shape), device=device, dtype=_float_dtype(dtype))
    out.device.rand(out._handle, rng or get_rng(), low, high)
    return out


def randn(
    *shape: Any,
    mean: float = 0.0,
    std: float = 1.0,
    device: Optional[Device] = None,
    dtype: Any = None,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """Generate random normal with specified mean and std deviation"""
    out = NDArray.make(_shape(shape), device=device, dtype=_float_dtype(dtype))
    out.device.randn(out._handle, rng or get_rng(), mean, std)
    return out


def full(
    *shape: Any,
    c: Any = 1.0,
    device: Optional[Device] = None,
    dtype: Any = None,
) -> NDArray:
    """Generate an array filled with the constant ``c``"""
    out = NDArray.make(_shape(shape), device=device, dtype=dtype)
    out.fill(c)
    return out


def ones(*shape: Any, device: Optional[Device] = None, dtype: Any = None) -> NDArray:
    return full(*shape, c=1, device=device, dtype=dtype)


def zeros(*shape: Any, device: Optional[Device] = None, dtype: Any = None) -> NDArray:
    # storage is zero-initialized
    return NDArray.make(_shape(shape), device=device, dtype=dtype)


def zeros_like(array: NDArray, *, device: Optional[Device] = None) -> NDArray:
    return zeros(array.shape, dtype=array.dtype, device=device or array.device)


def ones_like(array: NDArray, *, device: Optional[Device] = None) -> NDArray:
    return ones(array.shape, dtype=array.dtype, device=device or array.device)


def eye(n: int, *, device: Optional[Device] = None, dtype: Any = None) -> NDArray:
    """Identity matrix of size ``n``."""
    out = zeros(n, n, device=device, dtype=dtype)
    # the diagonal is the flat view stepped by n + 1
    if n:
        out.as_strided((n,), (n + 1,)).fill(1)
    return out


def arange(
    start: float,
    stop: Optional[float] = None,
    step: float = 1,
    *,
    device: Optional[Device] = None,
    dtype: Any = None,
) -> NDArray:
    """Evenly spaced values in ``[start, stop)``; ``arange(n)`` counts from 0."""
    if stop is None:
        start, stop = 0, start
    if step == 0:
        raise ValueError("arange step cannot be zero")
    return NDArray(np.arange(start, stop, step), device=device, dtype=dtype)


def linspace(
    start: float,
    end: float,
    count: int,
    *,
    device: Optional[Device] = None,
    dtype: Any = None,
) -> NDArray:
    """``count`` values from ``start`` to ``end``, both included.

    Spacing is uniform, ``(end - start) / (count - 1)``. A single value is
    ``[start]``.
    """
    if count < 1:
        raise ValueError(f"linspace needs a positive count, got {count}")
    return NDArray(
        np.linspace(start, end, count),
        device=device,
        dtype=_float_dtype(dtype),
    )


def tabulate(
    shape: ShapeLike,
    f: Callable[..., Any],
    *,
    device: Optional[Device] = None,
    dtype: Any = None,
) -> NDArray:
    """Build an array whose element at index ``idx`` is ``f(*idx)``.

    A vector calls ``f(i)`` and a matrix ``f(i, j)``. Without ``dtype`` the
    element type is inferred from the values returned.
    """
    dims = (shape,) if isinstance(shape, int) else tuple(shape)
    values = [f(*idx) for idx in np.ndindex(*dims)]
    data = np.array(values, dtype=None if dtype is None else DType.from_any(dtype).numpy)
    if not values:
        data = data.astype(DType.from_any(dtype or get_config().default_dtype).numpy)
    return NDArray(data.reshape(dims), device=device)
