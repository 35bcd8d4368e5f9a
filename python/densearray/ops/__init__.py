"""Named operations over ``NDArray`` operands."""

from .ops_elementwise import (
    add,
    divide,
    equal,
    exp,
    greater,
    greater_equal,
    less,
    less_equal,
    log,
    logical_and,
    logical_not,
    logical_or,
    maximum,
    minimum,
    multiply,
    multiply_elementwise,
    negative,
    not_equal,
    power,
    sqrt,
    subtract,
    tanh,
    where,
)
from .ops_linalg import dot, matmul, norm, outer, transpose

__all__ = [
    "add",
    "subtract",
    "multiply",
    "multiply_elementwise",
    "divide",
    "power",
    "maximum",
    "minimum",
    "equal",
    "not_equal",
    "less",
    "less_equal",
    "greater",
    "greater_equal",
    "logical_and",
    "logical_or",
    "logical_not",
    "negative",
    "log",
    "exp",
    "tanh",
    "sqrt",
    "where",
    "matmul",
    "dot",
    "transpose",
    "outer",
    "norm",
]
