"""
Engine configuration
====================

Process-wide settings, read once from the environment and adjustable at
runtime:

    DENSEARRAY_DEFAULT_DTYPE  element type of constructors (default float64)
    DENSEARRAY_SEED           seed of the global random generator
    DENSEARRAY_LOG_LEVEL      level used by ``configure_logging`` (default WARNING)
"""

import dataclasses
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from .backend.dtypes import DType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    default_dtype: DType = DType.FLOAT64
    seed: Optional[int] = None
    log_level: str = "WARNING"
    print_precision: int = 8

    def __post_init__(self) -> None:
        object.__setattr__(self, "default_dtype", DType.from_any(self.default_dtype))
        if self.default_dtype is DType.BOOL:
            raise ValueError("default_dtype must be numeric")
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level: {self.log_level}")
        if self.print_precision < 0:
            raise ValueError("print_precision must be non-negative")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        seed = os.environ.get("DENSEARRAY_SEED")
        return cls(
            default_dtype=DType.from_any(
                os.environ.get("DENSEARRAY_DEFAULT_DTYPE", "float64")
            ),
            seed=int(seed) if seed else None,
            log_level=os.environ.get("DENSEARRAY_LOG_LEVEL", "WARNING"),
        )


_config = EngineConfig.from_env()


def get_config() -> EngineConfig:
    return _config


def set_config(**changes: Any) -> EngineConfig:
    """Replace fields of the active configuration.

    Returns
    -------
    EngineConfig
        The configuration that was active before the call.

    Raises
    ------
    TypeError
        If a key is not a configuration field.
    ValueError
        If a value is invalid.
    """
    global _config
    previous = _config
    _config = dataclasses.replace(previous, **changes)
    logger.debug("Configuration changed: %s", changes)
    return previous


@contextmanager
def config_context(**changes: Any) -> Iterator[EngineConfig]:
    """Temporarily override configuration fields inside a ``with`` block."""
    global _config
    previous = set_config(**changes)
    try:
        yield _config
    finally:
        _config = previous


def configure_logging(level: Optional[str] = None) -> None:
    """Send package log records to stderr at ``level`` (default: configured level)."""
    package_logger = logging.getLogger("densearray")
    package_logger.setLevel((level or _config.log_level).upper())
    if not any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s")
        )
        package_logger.addHandler(handler)
