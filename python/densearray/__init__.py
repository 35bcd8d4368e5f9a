"""
densearray

Dense vectors and matrices over shared, strided storage: aliasing slices,
boolean masks, element-wise arithmetic and basic linear algebra.
"""

import logging
from importlib.metadata import PackageNotFoundError as _PkgNotFoundError
from importlib.metadata import version as _pkg_version

from .backend.device import Device, cpu_numpy, default_device
from .backend.dtypes import DType
from .backend.errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidRangeError,
    InvalidStepError,
    MaskLengthMismatchError,
    NDArrayError,
    OutOfBoundsError,
    ShapeMismatchError,
)
from .backend.layout import Layout
from .backend.ndarray import NDArray, array
from .config import config_context, configure_logging, get_config, set_config
from .init import (
    arange,
    eye,
    full,
    linspace,
    ones,
    ones_like,
    rand,
    randn,
    seed,
    tabulate,
    zeros,
    zeros_like,
)
from .ops import (
    add,
    divide,
    dot,
    matmul,
    multiply_elementwise,
    norm,
    outer,
    subtract,
    transpose,
    where,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "NDArray",
    "array",
    "Layout",
    "DType",
    "Device",
    "cpu_numpy",
    "default_device",
    "NDArrayError",
    "OutOfBoundsError",
    "IndexOutOfRangeError",
    "InvalidRangeError",
    "InvalidStepError",
    "MaskLengthMismatchError",
    "ShapeMismatchError",
    "DimensionMismatchError",
    "get_config",
    "set_config",
    "config_context",
    "configure_logging",
    "zeros",
    "ones",
    "full",
    "zeros_like",
    "ones_like",
    "eye",
    "arange",
    "linspace",
    "tabulate",
    "rand",
    "randn",
    "seed",
    "add",
    "subtract",
    "multiply_elementwise",
    "divide",
    "where",
    "matmul",
    "dot",
    "transpose",
    "outer",
    "norm",
]

try:
    __version__ = _pkg_version("densearray")
except _PkgNotFoundError:
    # Fallback for editable installs before metadata is written
    __version__ = "0.1.0"
