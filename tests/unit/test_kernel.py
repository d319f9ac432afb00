"""Tests for the per-block pairwise counting kernel."""

import jax.numpy as jnp
import numpy as np
import pytest

from pairbin import BinningGeometry, PointBuffer, WorkBlock, count_block
from tests.unit.reference import brute_force_histogram, sample_points


def _line_points(*xs):
    return PointBuffer(jnp.array([[x, 0.0, 0.0] for x in xs]))


def test_cross_block_counts_each_pair_once():
    geometry = BinningGeometry.from_params(1.0, 10.0)
    a = _line_points(0.0)
    b = _line_points(3.0)

    partial = count_block(WorkBlock(0, 1, 0, 1), a, b, geometry)

    counts = np.asarray(partial.counts)
    assert counts[9] == 1
    assert counts.sum() == 1
    assert partial.dropped == 0


def test_symmetric_off_diagonal_block_counts_twice():
    geometry = BinningGeometry.from_params(1.0, 10.0)
    points = _line_points(0.0, 2.0)

    partial = count_block(
        WorkBlock(1, 2, 0, 1), points, points, geometry, symmetric=True
    )

    counts = np.asarray(partial.counts)
    assert counts[4] == 2
    assert counts.sum() == 2


def test_diagonal_block_visits_lower_triangle_and_adds_self_pairs():
    geometry = BinningGeometry.from_params(1.0, 10.0)
    points = _line_points(0.0, 1.0, 3.0)

    partial = count_block(
        WorkBlock(0, 3, 0, 3, diagonal=True), points, points, geometry, symmetric=True
    )

    counts = np.asarray(partial.counts)
    # Self pairs, then (1,0) -> 1, (2,0) -> 9, (2,1) -> 4, each counted twice.
    assert counts[0] == 3
    assert counts[1] == 2
    assert counts[4] == 2
    assert counts[9] == 2
    assert counts.sum() == 9


def test_coincident_points_land_in_bin_zero():
    geometry = BinningGeometry.from_params(1.0, 5.0)
    points = _line_points(0.0, 0.0)

    partial = count_block(
        WorkBlock(0, 2, 0, 2, diagonal=True), points, points, geometry, symmetric=True
    )

    assert int(partial.counts[0]) == 4


def test_out_of_range_pairs_are_dropped_not_indexed():
    geometry = BinningGeometry.from_params(1.0, 3.0)
    a = _line_points(0.0, 1.0)
    b = _line_points(2.0, 50.0)

    partial = count_block(WorkBlock(0, 2, 0, 2), a, b, geometry)

    counts = np.asarray(partial.counts)
    assert counts.shape == (9,)
    assert counts[4] == 1
    assert counts[1] == 1
    assert counts.sum() == 2
    assert partial.dropped == 2


def test_exact_boundary_distance_is_dropped():
    geometry = BinningGeometry.from_params(1.0, 3.0)
    partial = count_block(
        WorkBlock(0, 1, 0, 1), _line_points(0.0), _line_points(3.0), geometry
    )
    assert int(partial.counts.sum()) == 0
    assert partial.dropped == 1


@pytest.mark.parametrize("tile_size", [1, 2, 5, 64])
def test_tiling_does_not_change_counts(tile_size):
    geometry = BinningGeometry.from_params(1.0, 9.0)
    points = sample_points(37, seed=3)
    block = WorkBlock(0, 37, 0, 37, diagonal=True)

    reference = count_block(block, points, points, geometry, symmetric=True)
    tiled = count_block(
        block, points, points, geometry, symmetric=True, tile_size=tile_size
    )

    assert jnp.array_equal(tiled.counts, reference.counts)
    assert tiled.dropped == reference.dropped


def test_full_cross_block_matches_brute_force():
    geometry = BinningGeometry.from_params(1.0, 8.0)
    a = sample_points(21, seed=1)
    b = sample_points(13, seed=2)

    partial = count_block(WorkBlock(0, 21, 0, 13), a, b, geometry, tile_size=4)
    expected = brute_force_histogram(a, b, geometry)

    assert np.array_equal(np.asarray(partial.counts), expected.squared)
    assert int(partial.counts.sum()) + partial.dropped == 21 * 13


def test_empty_block_returns_zero_histogram():
    geometry = BinningGeometry.from_params(1.0, 4.0)
    points = _line_points(0.0, 1.0)
    partial = count_block(WorkBlock(1, 1, 0, 2), points, points, geometry)
    assert int(partial.counts.sum()) == 0
    assert partial.dropped == 0


def test_block_outside_buffer_is_rejected():
    geometry = BinningGeometry.from_params(1.0, 4.0)
    points = _line_points(0.0, 1.0)
    with pytest.raises(ValueError, match="outside a buffer"):
        count_block(WorkBlock(0, 3, 0, 2), points, points, geometry)


def test_diagonal_block_requires_identical_ranges():
    geometry = BinningGeometry.from_params(1.0, 4.0)
    points = _line_points(0.0, 1.0, 2.0)
    with pytest.raises(ValueError, match="diagonal block"):
        count_block(WorkBlock(0, 2, 1, 3, diagonal=True), points, points, geometry)


def test_kernel_does_not_mutate_points():
    geometry = BinningGeometry.from_params(1.0, 6.0)
    points = sample_points(8, seed=5)
    before = np.asarray(points.coords).copy()
    count_block(WorkBlock(0, 8, 0, 8, diagonal=True), points, points, geometry)
    assert np.array_equal(np.asarray(points.coords), before)


def test_padded_tile_ids_are_global_indices():
    from pairbin.kernel import _padded_tile

    points = _line_points(0.0, 1.0, 2.0, 3.0, 4.0)
    rows, ids, valid = _padded_tile(points.coords, 3, 5, 4)

    assert rows.shape == (4, 3)
    assert ids.dtype == jnp.int64
    assert ids.tolist() == [3, 4, 5, 6]
    assert valid.tolist() == [True, True, False, False]
