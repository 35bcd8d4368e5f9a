import numpy as np
import pytest
from densearray.backend import ndarray as nd
from densearray.backend import ndarray_backend_numpy as backend
from densearray.backend.dtypes import DType
from densearray.backend.errors import OutOfBoundsError
from densearray.backend.layout import Layout


def test_buffer_is_zero_initialized() -> None:
    for dtype in DType:
        a = backend.Array(4, dtype)
        assert a.size == 4
        assert a.buffer.dtype == dtype.numpy
        assert not a.buffer.any()


@pytest.mark.parametrize("offset", [-1, 5, 100])
def test_buffer_read_write_bounds(offset: int) -> None:
    a = backend.Array(5)
    with pytest.raises(OutOfBoundsError):
        a.read(offset)
    with pytest.raises(OutOfBoundsError):
        a.write(offset, 1.0)
    with pytest.raises(IndexError):
        a.read(offset)


def test_buffer_read_write() -> None:
    a = backend.Array(3, DType.INT32)
    a.write(2, 7)
    assert a.read(2) == 7
    assert isinstance(a.read(2), int)
    a.write(0, 3.8)
    assert a.read(0) == 3


def test_copy_range() -> None:
    src = backend.Array(5)
    src.buffer[:] = np.arange(5)
    dst = backend.Array(6)
    src.copy_range(1, dst, 2, 3)
    assert dst.buffer.tolist() == [0, 0, 1, 2, 3, 0]
    src.copy_range(4, dst, 0, 0)

    with pytest.raises(OutOfBoundsError):
        src.copy_range(3, dst, 0, 3)
    with pytest.raises(OutOfBoundsError):
        src.copy_range(0, dst, 4, 3)
    # nothing written on failure
    assert dst.buffer.tolist() == [0, 0, 1, 2, 3, 0]


def test_layout_validation() -> None:
    with pytest.raises(ValueError):
        Layout((2, 3), (3,))
    with pytest.raises(ValueError):
        Layout((-1,), (1,))
    assert Layout.contiguous((2, 3, 4)).strides == (12, 4, 1)
    assert Layout.contiguous((0, 3)).size == 0


def test_layout_bounds() -> None:
    Layout((3,), (2,), 1).check_bounds(6)
    with pytest.raises(OutOfBoundsError):
        Layout((3,), (2,), 1).check_bounds(5)
    Layout((3,), (-1,), 2).check_bounds(3)
    with pytest.raises(OutOfBoundsError):
        Layout((3,), (-1,), 1).check_bounds(3)
    # empty layouts address nothing
    Layout((0,), (1,), 10).check_bounds(0)


def test_layout_offsets_and_overlap() -> None:
    m = Layout((2, 3), (3, 1))
    assert m.offsets().tolist() == [0, 1, 2, 3, 4, 5]
    assert m.permute((1, 0)).offsets().tolist() == [0, 3, 1, 4, 2, 5]
    assert Layout((3,), (-2,), 4).offsets().tolist() == [4, 2, 0]
    assert Layout((2, 2), (0, 1), 1).offsets().tolist() == [1, 2, 1, 2]

    evens = Layout((3,), (2,), 0)
    odds = Layout((3,), (2,), 1)
    assert not evens.overlaps(odds)
    assert evens.overlaps(Layout((1,), (1,), 4))
    assert m.extent() == (0, 5)
    assert Layout((0,), (1,)).extent() is None


def test_make_checks_handle_capacity() -> None:
    handle = backend.Array(6)
    view = nd.NDArray.make((2, 3), handle=handle)
    assert view.dtype is DType.FLOAT64
    with pytest.raises(OutOfBoundsError):
        nd.NDArray.make((2, 3), handle=handle, offset=1)
    with pytest.raises(OutOfBoundsError):
        nd.NDArray.make((4,), strides=(2,), handle=handle)
    with pytest.raises(OutOfBoundsError):
        nd.array(np.arange(4.0)).as_strided((3,), (2,))


def test_strided_kernels() -> None:
    a = backend.Array(6)
    a.buffer[:] = np.arange(6)
    view = backend.to_numpy(a, (2, 2), (1, 3), 1)
    assert view.tolist() == [[1, 4], [2, 5]]
    assert np.shares_memory(view, a.buffer)

    out = backend.Array(4)
    backend.compact(a, out, (2, 2), (1, 3), 1)
    assert out.buffer.tolist() == [1, 4, 2, 5]

    backend.scalar_setitem(-1, a, (3,), (-2,), 5)
    assert a.buffer.tolist() == [0, -1, 2, -1, 4, -1]

    src = backend.Array(2)
    src.buffer[:] = [10, 20]
    backend.ewise_setitem(src, a, (2,), (3,), 0)
    assert a.buffer.tolist() == [10, -1, 2, 20, 4, -1]


def test_zero_size_reduction() -> None:
    empty = nd.array(np.zeros((2, 0)))
    assert empty.sum(axis=1).tolist() == [0.0, 0.0]
    assert empty.sum() == 0.0
    with pytest.raises(ValueError):
        empty.max(axis=1)


def test_device_forwarding() -> None:
    v = nd.array([1.0, 2.0])
    assert v.device.name == "cpu_numpy"
    assert v.device == nd.default_device()
    assert repr(v.device) == "cpu_numpy()"
    assert v.device.Array is backend.Array
