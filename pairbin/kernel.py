"""Pairwise counting kernel: one work block in, one partial histogram out.

The block is swept in square tiles by a jitted function, so every call sees
the same static shapes and peak memory per task is ``O(tile_size**2)``
regardless of block size. Squared separations map straight to bins because
the coordinates are already in bin units; separations beyond the histogram
are dropped and tallied instead of indexed.
"""

from __future__ import annotations

from functools import partial
from typing import NamedTuple

import jax
import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .binning import BinningGeometry, clip_square_bins
from .dtypes import COORD_DTYPE, COUNT_DTYPE, INDEX_DTYPE, as_count, as_index
from .partition import WorkBlock
from .points import PointBuffer

DEFAULT_TILE_SIZE = 512


class PartialHistogram(NamedTuple):
    """Squared-distance counts produced by one work block."""

    block: WorkBlock
    counts: Array
    dropped: int


def _next_power_of_two(value: int) -> int:
    value = max(1, int(value))
    return 1 << (value - 1).bit_length()


def _resolve_tile(block: WorkBlock, tile_size: int) -> int:
    if tile_size < 1:
        raise ValueError(f"tile_size must be >= 1, received {tile_size}")
    # Power-of-two tiles bound the number of distinct compiled shapes.
    largest = max(block.size_1, block.size_2)
    return min(_next_power_of_two(tile_size), _next_power_of_two(largest))


def _padded_tile(coords: Array, start: int, stop: int, tile: int):
    """Return ``tile`` rows from ``[start, stop)`` padded with masked zeros."""

    rows = coords[start:stop]
    pad = tile - rows.shape[0]
    if pad > 0:
        rows = jnp.concatenate([rows, jnp.zeros((pad, 3), dtype=COORD_DTYPE)], axis=0)
    ids = as_index(start) + jnp.arange(tile, dtype=INDEX_DTYPE)
    valid = ids < stop
    return rows, ids, valid


@partial(jax.jit, static_argnames=("n_square_bins", "below_diagonal"))
def _accumulate_tile(
    counts: Array,
    dropped: Array,
    rows: Array,
    row_ids: Array,
    row_valid: Array,
    cols: Array,
    col_ids: Array,
    col_valid: Array,
    weight: Array,
    *,
    n_square_bins: int,
    below_diagonal: bool,
) -> tuple[Array, Array]:
    deltas = rows[:, None, :] - cols[None, :, :]
    d2 = jnp.sum(deltas * deltas, axis=-1)

    active = row_valid[:, None] & col_valid[None, :]
    if below_diagonal:
        active = active & (col_ids[None, :] < row_ids[:, None])

    bins = clip_square_bins(d2, n_square_bins)
    in_range = bins < n_square_bins
    zero = jnp.zeros((), dtype=COUNT_DTYPE)
    weights = jnp.where(active, weight, zero)

    counts = counts.at[bins.reshape(-1)].add(
        jnp.where(in_range, weights, zero).reshape(-1),
        mode="drop",
    )
    dropped = dropped + jnp.sum(jnp.where(in_range, zero, weights), dtype=COUNT_DTYPE)
    return counts, dropped


def _check_range(name: str, start: int, end: int, n_points: int) -> None:
    if not 0 <= start <= end <= n_points:
        raise ValueError(
            f"{name} [{start}, {end}) lies outside a buffer of {n_points} points"
        )


@jaxtyped(typechecker=beartype)
def count_block(
    block: WorkBlock,
    points_1: PointBuffer,
    points_2: PointBuffer,
    geometry: BinningGeometry,
    *,
    symmetric: bool = False,
    tile_size: int = DEFAULT_TILE_SIZE,
) -> PartialHistogram:
    """Histogram the squared separations of every pair in ``block``.

    Args:
        block: Ranges to compare. A diagonal block compares one range with
            itself and only visits ``q < p``.
        points_1: Buffer indexed by ``block.start_1:block.end_1``.
        points_2: Buffer indexed by ``block.start_2:block.end_2``; the same
            object as ``points_1`` for a self-comparison.
        geometry: Histogram layout; bins ``>= n_square_bins`` are dropped.
        symmetric: True when the block belongs to a symmetric self-comparison,
            in which case each visited pair counts twice.
        tile_size: Upper bound on the tile edge used to sweep the block.

    Returns:
        The block's partial histogram and the number of pairs dropped for
        lying beyond the histogram.
    """

    _check_range("range 1", block.start_1, block.end_1, points_1.n_points)
    _check_range("range 2", block.start_2, block.end_2, points_2.n_points)
    if block.diagonal and block.range_1 != block.range_2:
        raise ValueError(f"diagonal block must compare a range with itself: {block}")

    n_square_bins = geometry.n_square_bins
    counts = geometry.empty_histogram()
    dropped = as_count(0)
    if block.size_1 == 0 or block.size_2 == 0:
        return PartialHistogram(block=block, counts=counts, dropped=0)

    weight = as_count(2 if (symmetric or block.diagonal) else 1)
    tile = _resolve_tile(block, tile_size)

    for row_start in range(block.start_1, block.end_1, tile):
        row_stop = min(row_start + tile, block.end_1)
        rows, row_ids, row_valid = _padded_tile(
            points_1.coords, row_start, row_stop, tile
        )
        for col_start in range(block.start_2, block.end_2, tile):
            if block.diagonal and col_start >= row_stop:
                # Entirely on or above the diagonal.
                break
            col_stop = min(col_start + tile, block.end_2)
            cols, col_ids, col_valid = _padded_tile(
                points_2.coords, col_start, col_stop, tile
            )
            counts, dropped = _accumulate_tile(
                counts,
                dropped,
                rows,
                row_ids,
                row_valid,
                cols,
                col_ids,
                col_valid,
                weight,
                n_square_bins=n_square_bins,
                below_diagonal=block.diagonal,
            )

    if block.diagonal:
        # Every point sits at distance zero from itself.
        counts = counts.at[0].add(as_count(block.size_1))

    return PartialHistogram(block=block, counts=counts, dropped=int(dropped))


__all__ = ["DEFAULT_TILE_SIZE", "PartialHistogram", "count_block"]
