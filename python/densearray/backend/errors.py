"""Error taxonomy of the array engine.

Every error also derives from the matching builtin, so callers may catch
``IndexError`` / ``ValueError`` as they would with NumPy.
"""


class NDArrayError(Exception):
    """Base class for all engine errors."""


class OutOfBoundsError(NDArrayError, IndexError):
    """A storage offset lies outside ``[0, capacity)``."""


class IndexOutOfRangeError(NDArrayError, IndexError):
    """A scalar index lies outside the extent of its axis."""


class InvalidRangeError(NDArrayError, ValueError):
    """A range is reversed with respect to its step or exceeds the axis."""


class InvalidStepError(NDArrayError, ValueError):
    """A stepped range has a zero step."""


class MaskLengthMismatchError(NDArrayError, ValueError):
    """A boolean mask does not match the length of the axis it filters."""


class ShapeMismatchError(NDArrayError, ValueError):
    """Operands of an element-wise operation or assignment differ in shape."""


class DimensionMismatchError(ShapeMismatchError):
    """Inner dimensions of a matrix product do not agree."""
