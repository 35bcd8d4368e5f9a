from .init_basic import (
    arange,
    eye,
    full,
    get_rng,
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

__all__ = [
    "rand",
    "randn",
    "seed",
    "get_rng",
    "full",
    "ones",
    "zeros",
    "zeros_like",
    "ones_like",
    "eye",
    "arange",
    "linspace",
    "tabulate",
]
