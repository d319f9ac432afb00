"""Merge partial histograms and fold squared bins into linear radius bins."""

from __future__ import annotations

from typing import Sequence

import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .binning import BinningGeometry
from .dtypes import COUNT_DTYPE
from .kernel import PartialHistogram


def _as_histogram(counts, geometry: BinningGeometry) -> Array:
    arr = jnp.asarray(counts, dtype=COUNT_DTYPE)
    if arr.shape != (geometry.n_square_bins,):
        raise ValueError(
            "histogram must have shape "
            f"({geometry.n_square_bins},); received {arr.shape}"
        )
    return arr


@jaxtyped(typechecker=beartype)
def merge_histograms(
    partials: Sequence[PartialHistogram],
    geometry: BinningGeometry,
) -> Array:
    """Sum partial histograms element-wise.

    Addition of unsigned counters is commutative and associative, so the
    order in which tasks finished does not matter. No partials yields an
    all-zero histogram.
    """

    merged = geometry.empty_histogram()
    for partial_hist in partials:
        merged = merged + _as_histogram(partial_hist.counts, geometry)
    return merged


def merged_dropped(partials: Sequence[PartialHistogram]) -> int:
    """Total number of pairs the kernels dropped as out of range."""

    return sum(int(p.dropped) for p in partials)


@jaxtyped(typechecker=beartype)
def linearize(merged: Array, geometry: BinningGeometry) -> Array:
    """Fold the squared-distance histogram into ``n_linear_bins`` radius bins.

    Linear bin ``i`` sums ``merged[i**2 : min((i + 1)**2, n_square_bins)]``;
    a bin whose start lies past the squared histogram is zero.
    """

    merged = _as_histogram(merged, geometry)
    n_square = geometry.n_square_bins
    edges = jnp.arange(geometry.n_linear_bins + 1, dtype=jnp.int64) ** 2
    edges = jnp.minimum(edges, n_square)
    cumulative = jnp.concatenate(
        [jnp.zeros((1,), dtype=COUNT_DTYPE), jnp.cumsum(merged, dtype=COUNT_DTYPE)]
    )
    return cumulative[edges[1:]] - cumulative[edges[:-1]]


@jaxtyped(typechecker=beartype)
def tail_count(merged: Array, geometry: BinningGeometry) -> int:
    """Counts in squared bins at or beyond ``n_linear_bins**2``.

    These separations are shorter than ``max_r`` yet past the last whole
    linear bin, so no linear bin receives them.
    """

    merged = _as_histogram(merged, geometry)
    start = min(geometry.n_linear_bins**2, geometry.n_square_bins)
    return int(jnp.sum(merged[start:], dtype=COUNT_DTYPE))


__all__ = ["linearize", "merge_histograms", "merged_dropped", "tail_count"]
