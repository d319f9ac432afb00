"""Local dtype policy for pairbin contracts."""

import jax.numpy as jnp

# Coordinates are carried in double precision end to end.
COORD_DTYPE = jnp.float64

# Histogram counters must not wrap for O(N^2) pair totals.
COUNT_DTYPE = jnp.uint64

INDEX_DTYPE = jnp.int64


def as_coords(x):
    """Convert a scalar/array to pairbin coordinate dtype."""
    return jnp.asarray(x, dtype=COORD_DTYPE)


def as_count(x):
    """Convert a scalar/array to pairbin counter dtype."""
    return jnp.asarray(x, dtype=COUNT_DTYPE)


def as_index(x):
    """Convert a scalar/array to pairbin index dtype."""
    return jnp.asarray(x, dtype=INDEX_DTYPE)


__all__ = [
    "COORD_DTYPE",
    "COUNT_DTYPE",
    "INDEX_DTYPE",
    "as_coords",
    "as_count",
    "as_index",
]
