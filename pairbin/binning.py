"""Binning geometry shared by the counting kernel and the linearizer.

Point coordinates are pre-scaled by ``1 / bin_size`` when they are loaded, so
a squared separation is already expressed in squared bin units and the bin
index is simply its integer part. Linear bin ``i`` collects the squared bins
``[i**2, (i + 1)**2)``, which keeps the square-root out of the hot loop.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import jax.numpy as jnp
from jaxtyping import Array

from .dtypes import COUNT_DTYPE, INDEX_DTYPE
from .errors import ConfigurationError


@dataclass(frozen=True)
class BinningGeometry:
    """Resolved histogram layout for one run."""

    bin_size: float
    bin_factor: float
    n_linear_bins: int
    n_square_bins: int

    @classmethod
    def from_params(cls, bin_size: float, max_r: float) -> "BinningGeometry":
        """Validate ``bin_size``/``max_r`` and derive the bin counts."""

        bin_size = float(bin_size)
        max_r = float(max_r)
        if not math.isfinite(bin_size) or bin_size <= 0.0:
            raise ConfigurationError("bin_size", bin_size, "a finite value > 0")
        if not math.isfinite(max_r) or max_r <= bin_size:
            raise ConfigurationError(
                "max_r", max_r, f"a finite value > bin_size ({bin_size})"
            )

        ratio = max_r / bin_size
        n_linear_bins = int(ratio)
        # Every index (i + 1)**2 - 1 with i < n_linear_bins must be addressable.
        n_square_bins = max(int(ratio * ratio), n_linear_bins * n_linear_bins)
        return cls(
            bin_size=bin_size,
            bin_factor=1.0 / (bin_size * bin_size),
            n_linear_bins=n_linear_bins,
            n_square_bins=n_square_bins,
        )

    @property
    def scale(self) -> float:
        """Factor applied to raw coordinates so one unit equals one bin."""

        return 1.0 / self.bin_size

    @property
    def max_r(self) -> float:
        """Largest radius covered by the linear histogram."""

        return self.n_linear_bins * self.bin_size

    def empty_histogram(self) -> Array:
        """Return a zeroed squared-distance histogram."""

        return jnp.zeros((self.n_square_bins,), dtype=COUNT_DTYPE)

    def linear_bin_range(self, i: int) -> tuple[int, int]:
        """Return the squared-bin span of linear bin ``i`` clipped to the layout."""

        lo, hi = linear_bin_range(i)
        return min(lo, self.n_square_bins), min(hi, self.n_square_bins)

    def bin_edges(self) -> Array:
        """Return the ``n_linear_bins + 1`` radii bounding the linear bins."""

        return jnp.arange(self.n_linear_bins + 1, dtype=jnp.float64) * self.bin_size


def square_bin_index(dx, dy, dz) -> Array:
    """Map a separation in bin units to its squared-distance bin.

    Truncates toward zero, so a squared distance that is exactly an integer
    lands in that bin.
    """

    d2 = dx * dx + dy * dy + dz * dz
    return jnp.floor(jnp.asarray(d2)).astype(INDEX_DTYPE)


def clip_square_bins(d2: Array, n_square_bins: int) -> Array:
    """Return squared-bin indices with out-of-range entries set to ``n_square_bins``.

    Non-finite and negative squared distances are treated as out of range as
    well, so the result can be scattered with ``mode="drop"``.
    """

    in_range = jnp.isfinite(d2) & (d2 >= 0.0) & (d2 < n_square_bins)
    safe = jnp.where(in_range, d2, 0.0)
    return jnp.where(
        in_range,
        jnp.floor(safe).astype(INDEX_DTYPE),
        jnp.asarray(n_square_bins, dtype=INDEX_DTYPE),
    )


def linear_bin_range(i: int) -> tuple[int, int]:
    """Return the half-open squared-bin range ``[i**2, (i + 1)**2)``."""

    if i < 0:
        raise ValueError(f"linear bin index must be >= 0, received {i}")
    return i * i, (i + 1) * (i + 1)


__all__ = [
    "BinningGeometry",
    "clip_square_bins",
    "linear_bin_range",
    "square_bin_index",
]
