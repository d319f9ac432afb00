"""Tests for merging partial histograms and linearizing squared bins."""

import jax.numpy as jnp
import numpy as np
import pytest

from pairbin import (
    BinningGeometry,
    PartialHistogram,
    WorkBlock,
    linearize,
    merge_histograms,
    merged_dropped,
    tail_count,
)


def _partial(counts, dropped=0):
    return PartialHistogram(
        block=WorkBlock(0, 1, 0, 1),
        counts=jnp.asarray(counts, dtype=jnp.uint64),
        dropped=dropped,
    )


def test_merge_sums_elementwise_in_any_order():
    geometry = BinningGeometry.from_params(1.0, 2.0)
    parts = [
        _partial([1, 0, 2, 0]),
        _partial([0, 3, 0, 1]),
        _partial([5, 5, 5, 5]),
    ]

    forward = merge_histograms(parts, geometry)
    backward = merge_histograms(parts[::-1], geometry)

    assert forward.dtype == jnp.uint64
    assert forward.tolist() == [6, 8, 7, 6]
    assert jnp.array_equal(forward, backward)


def test_merge_of_nothing_is_zero_histogram():
    geometry = BinningGeometry.from_params(1.0, 3.0)
    merged = merge_histograms([], geometry)
    assert merged.shape == (9,)
    assert int(merged.sum()) == 0


def test_merge_rejects_wrong_length():
    geometry = BinningGeometry.from_params(1.0, 2.0)
    with pytest.raises(ValueError, match="shape"):
        merge_histograms([_partial([1, 2, 3])], geometry)


def test_merged_dropped_sums_partials():
    assert merged_dropped([_partial([0], 3), _partial([0], 4)]) == 7
    assert merged_dropped([]) == 0


def test_linearize_folds_square_ranges():
    geometry = BinningGeometry.from_params(1.0, 4.0)
    merged = jnp.arange(16, dtype=jnp.uint64)

    linear = linearize(merged, geometry)

    expected = [
        0,
        sum(range(1, 4)),
        sum(range(4, 9)),
        sum(range(9, 16)),
    ]
    assert linear.dtype == jnp.uint64
    assert linear.tolist() == expected


def test_linearize_places_squared_bin_nine_in_linear_bin_three():
    geometry = BinningGeometry.from_params(1.0, 10.0)
    merged = geometry.empty_histogram().at[9].set(1)
    linear = np.asarray(linearize(merged, geometry))
    assert linear[3] == 1
    assert linear.sum() == 1


def test_linearize_clips_to_square_histogram_and_reports_tail():
    geometry = BinningGeometry.from_params(1.0, 3.5)
    merged = jnp.ones((geometry.n_square_bins,), dtype=jnp.uint64)

    linear = linearize(merged, geometry)

    assert linear.tolist() == [1, 3, 5]
    # Squared bins 9, 10 and 11 lie past the last whole linear bin.
    assert tail_count(merged, geometry) == 3
