from typing import Any

import numpy as np
import pytest
import densearray as da
from densearray import ops
from densearray.backend import ndarray as nd
from densearray.backend.dtypes import DType
from densearray.backend.errors import DimensionMismatchError, ShapeMismatchError


def test_vector_scalar_and_elementwise() -> None:
    v = nd.array([1, 2, 3])
    assert (v * 2).tolist() == [2, 4, 6]
    assert (v + nd.array([4, 5, 6])).tolist() == [5, 7, 9]
    assert (v + [4, 5, 6]).tolist() == [5, 7, 9]
    assert ops.multiply_elementwise(v, v).tolist() == [1, 4, 9]
    assert ops.add(10, v).tolist() == [11, 12, 13]
    assert ops.subtract(10, v).tolist() == [9, 8, 7]
    assert (-v).tolist() == [-1, -2, -3]


def test_matrix_vector_product() -> None:
    m1 = nd.array([[2, 3], [5, 6], [8, 9]])
    v = nd.array([1, 2])
    out = m1 @ v
    assert out.shape == (3,)
    assert out.tolist() == [8, 17, 26]
    assert ops.matmul(m1, v).tolist() == [8, 17, 26]


def test_vector_matrix_and_dot() -> None:
    m = nd.array([[1, 2], [3, 4], [5, 6]])
    v = nd.array([1, 0, -1])
    assert (v @ m).tolist() == [-4, -4]
    assert v.dot(nd.array([2, 2, 2])) == 0
    assert ops.dot(nd.array([1.0, 2.0]), nd.array([3.0, 4.0])) == 11.0


def test_matmul_dimension_mismatch() -> None:
    a = nd.array(np.ones((2, 3)))
    with pytest.raises(DimensionMismatchError):
        a @ nd.array(np.ones((2, 3)))
    with pytest.raises(DimensionMismatchError):
        a @ nd.array(np.ones(4))
    with pytest.raises(DimensionMismatchError):
        nd.array(np.ones((2, 2, 2))) @ a
    with pytest.raises(ShapeMismatchError):
        a @ nd.array(np.ones((4, 1)))


@pytest.mark.parametrize("m,n,p,q", [(2, 3, 4, 5), (1, 1, 1, 1), (6, 2, 7, 3)])
def test_matmul_associative(m: int, n: int, p: int, q: int) -> None:
    a = nd.array(np.random.randn(m, n))
    b = nd.array(np.random.randn(n, p))
    c = nd.array(np.random.randn(p, q))
    np.testing.assert_allclose(
        ((a @ b) @ c).numpy(), (a @ (b @ c)).numpy(), rtol=1e-9, atol=1e-9
    )


def test_matmul_result_is_fresh_storage() -> None:
    a = nd.array(np.eye(2))
    b = nd.array(np.array([[1.0, 2.0], [3.0, 4.0]]))
    c = a @ b
    assert not c.shares_memory(a) and not c.shares_memory(b)
    assert c.is_compact()


@pytest.mark.parametrize(
    "lhs,rhs,expected",
    [
        (np.int32, np.int32, DType.INT32),
        (np.int32, np.int64, DType.INT64),
        (np.int32, np.float32, DType.FLOAT64),
        (np.float32, np.float32, DType.FLOAT32),
        (np.float32, np.float64, DType.FLOAT64),
        (np.bool_, np.bool_, DType.INT64),
        (np.bool_, np.float32, DType.FLOAT32),
    ],
)
def test_arithmetic_promotion(lhs: Any, rhs: Any, expected: DType) -> None:
    a = nd.array(np.ones(3, dtype=lhs))
    b = nd.array(np.ones(3, dtype=rhs))
    assert (a + b).dtype is expected
    assert (b * a).dtype is expected
    assert (a @ b.reshape((3, 1))).dtype is expected


def test_bool_addition_counts() -> None:
    a = nd.array([True, True, False])
    assert (a + a).tolist() == [2, 2, 0]


def test_scalar_promotion() -> None:
    i32 = nd.array(np.array([1, 2], dtype=np.int32))
    f32 = nd.array(np.array([1, 2], dtype=np.float32))
    assert (i32 * 2).dtype is DType.INT32
    assert (i32 * 2.5).dtype is DType.FLOAT64
    assert (f32 * 2).dtype is DType.FLOAT32
    assert (f32 + 0.5).dtype is DType.FLOAT32
    assert (i32 / 2).dtype is DType.FLOAT64
    assert (f32 / 2).dtype is DType.FLOAT32
    assert (i32 / 2).tolist() == [0.5, 1.0]
    assert (i32 > 1.5).tolist() == [False, True]


def test_scalar_outside_integer_range_widens() -> None:
    i32 = nd.array(np.array([1, 2], dtype=np.int32))
    big = 3_000_000_000
    assert (i32 < big).tolist() == [True, True]
    assert (big > i32).tolist() == [True, True]
    assert (i32 == -big).tolist() == [False, False]

    widened = i32 + big
    assert widened.dtype is DType.INT64
    assert widened.tolist() == [big + 1, big + 2]
    assert (i32 * 2).dtype is DType.INT32

    i64 = nd.array([1, 2])
    huge = 2**70
    assert (i64 < huge).tolist() == [True, True]
    assert (i64 + huge).dtype is DType.FLOAT64
    assert ops.where(i32 > 1, i32, big).tolist() == [big, 2]


def test_numpy_scalar_on_the_left() -> None:
    v = nd.array([1, 2, 3])
    out = np.float64(2.0) * v
    assert isinstance(out, nd.NDArray)
    assert out.tolist() == [2.0, 4.0, 6.0]
    assert out.dtype is DType.FLOAT64

    shifted = np.int64(1) + v
    assert isinstance(shifted, nd.NDArray)
    assert shifted.tolist() == [2, 3, 4]
    assert isinstance(np.int32(2) < v, nd.NDArray)
    assert (np.float64(10.0) - v).tolist() == [9.0, 8.0, 7.0]


def test_elementwise_shape_mismatch() -> None:
    a = nd.array(np.ones((2, 3)))
    with pytest.raises(ShapeMismatchError):
        a + nd.array(np.ones((3, 2)))
    with pytest.raises(ShapeMismatchError):
        a * nd.array(np.ones(3))
    with pytest.raises(ShapeMismatchError):
        a == nd.array(np.ones(6))
    # broadcasting is explicit
    b = a + nd.array(np.arange(3.0)).broadcast_to((2, 3))
    assert b.tolist() == [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]]


def test_comparison_masks() -> None:
    m = nd.array([[1, 5], [7, 2]])
    mask = m > 3
    assert mask.dtype is DType.BOOL
    assert mask.shape == (2, 2)
    assert mask.tolist() == [[False, True], [True, False]]
    assert (3 < m).tolist() == mask.tolist()
    assert ((m > 1) & (m < 7)).tolist() == [[False, True], [False, True]]
    assert ((m == 1) | (m == 2)).tolist() == [[True, False], [False, True]]
    assert (~mask).tolist() == [[True, False], [False, True]]
    with pytest.raises(TypeError):
        m & m
    with pytest.raises(TypeError):
        ~m


def test_named_comparisons() -> None:
    v = nd.array([1.0, 2.0, 3.0])
    assert ops.less(v, 2).tolist() == [True, False, False]
    assert ops.less(2, v).tolist() == [False, False, True]
    assert ops.greater_equal(v, v).tolist() == [True, True, True]
    assert ops.not_equal(v, 2.0).tolist() == [True, False, True]
    assert ops.logical_not(ops.equal(v, 1.0)).tolist() == [False, True, True]


def test_where() -> None:
    v = nd.array([1, -2, 3, -4])
    assert ops.where(v > 0, v, 0).tolist() == [1, 0, 3, 0]
    assert ops.where(v > 0, 1.0, -1.0).tolist() == [1.0, -1.0, 1.0, -1.0]
    m = nd.array([[1.0, 2.0], [3.0, 4.0]])
    out = ops.where(m > 2, m, m * 10)
    assert out.tolist() == [[10.0, 20.0], [3.0, 4.0]]
    with pytest.raises(ShapeMismatchError):
        ops.where(v > 0, nd.array([1, 2]), 0)


def test_unary_types() -> None:
    v = nd.array([1, 4, 9])
    assert v.sqrt().tolist() == [1.0, 2.0, 3.0]
    assert v.sqrt().dtype is DType.FLOAT64
    assert abs(nd.array([-1, 2])).tolist() == [1, 2]
    f = nd.array(np.array([1.0], dtype=np.float32))
    assert f.exp().dtype is DType.FLOAT32


def test_outer_and_norm() -> None:
    a = nd.array([1.0, 2.0])
    b = nd.array([3.0, 4.0, 5.0])
    np.testing.assert_allclose(ops.outer(a, b).numpy(), np.outer([1, 2], [3, 4, 5]))
    assert ops.norm(nd.array([3.0, 4.0])) == 5.0
    with pytest.raises(DimensionMismatchError):
        ops.outer(a, nd.array(np.ones((2, 2))))


def test_operations_on_views() -> None:
    _M = np.arange(16.0).reshape(4, 4)
    m = nd.array(_M)
    col = m[:, 1]
    np.testing.assert_allclose((col * 2).numpy(), _M[:, 1] * 2)
    np.testing.assert_allclose((m[::2, ::2] + m[1::2, 1::2]).numpy(), _M[::2, ::2] + _M[1::2, 1::2])
    np.testing.assert_allclose((m[1:3, :] @ m[:, 0]).numpy(), _M[1:3, :] @ _M[:, 0])


def test_package_exports() -> None:
    v = da.array([1.0, 2.0])
    assert da.add(v, 1).tolist() == [2.0, 3.0]
    assert da.transpose(da.eye(2)).tolist() == [[1.0, 0.0], [0.0, 1.0]]
    with pytest.raises(TypeError):
        ops.add(v, {"a": 1})
