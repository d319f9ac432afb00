"""Resolved run options for a pairwise-distance histogram."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .binning import BinningGeometry
from .errors import ConfigurationError
from .kernel import DEFAULT_TILE_SIZE

DEFAULT_BIN_SIZE = 1.0
DEFAULT_MAX_R = 50.0
DEFAULT_THREAD_COUNT = 5


@dataclass(frozen=True)
class HistogramConfig:
    """Options for one histogram run."""

    bin_size: float = DEFAULT_BIN_SIZE
    max_r: float = DEFAULT_MAX_R
    thread_count: int = DEFAULT_THREAD_COUNT
    assume_different: bool = False
    tile_size: int = DEFAULT_TILE_SIZE
    verbose: bool = False
    timer: bool = False

    def validate(self) -> "HistogramConfig":
        """Check every option, raising ``ConfigurationError`` on the first bad one."""

        if not math.isfinite(self.bin_size) or self.bin_size <= 0.0:
            raise ConfigurationError("bin_size", self.bin_size, "a finite value > 0")
        if not math.isfinite(self.max_r) or self.max_r <= self.bin_size:
            raise ConfigurationError(
                "max_r", self.max_r, f"a finite value > bin_size ({self.bin_size})"
            )
        if isinstance(self.thread_count, bool) or self.thread_count < 1:
            raise ConfigurationError("thread_count", self.thread_count, ">= 1")
        if isinstance(self.tile_size, bool) or self.tile_size < 1:
            raise ConfigurationError("tile_size", self.tile_size, ">= 1")
        return self

    def geometry(self) -> BinningGeometry:
        """Return the binning geometry described by this config."""

        return BinningGeometry.from_params(self.bin_size, self.max_r)

    def with_threads(self, thread_count: int) -> "HistogramConfig":
        return replace(self, thread_count=thread_count)


__all__ = [
    "DEFAULT_BIN_SIZE",
    "DEFAULT_MAX_R",
    "DEFAULT_THREAD_COUNT",
    "HistogramConfig",
]
