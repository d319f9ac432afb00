"""Point buffers and the packed little-endian float64 point-file format."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Union

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array

from .dtypes import COORD_DTYPE, as_coords
from .errors import PointFileError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# On-disk layout: x, y, z per point, each an IEEE-754 little-endian double.
FILE_DTYPE = np.dtype("<f8")


@dataclass(frozen=True)
class PointBuffer:
    """Immutable ``(N, 3)`` coordinates already scaled to bin units.

    One buffer is shared by reference between every counting task of a run;
    nothing copies or mutates it.
    """

    coords: Array

    def __post_init__(self) -> None:
        coords = as_coords(self.coords)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError(
                f"coords must have shape (n_points, 3); received {coords.shape}"
            )
        object.__setattr__(self, "coords", coords)

    @classmethod
    def from_flat(cls, values, scale: float = 1.0) -> "PointBuffer":
        """Build a buffer from a flat ``x0, y0, z0, x1, ...`` sequence."""

        flat = np.asarray(values, dtype=np.float64).reshape(-1)
        if flat.size % 3 != 0:
            raise ValueError(
                f"flat coordinate count must be a multiple of 3, received {flat.size}"
            )
        return cls(jnp.asarray(flat.reshape(-1, 3) * float(scale), dtype=COORD_DTYPE))

    @classmethod
    def empty(cls) -> "PointBuffer":
        return cls(jnp.zeros((0, 3), dtype=COORD_DTYPE))

    @property
    def n_points(self) -> int:
        """Return the number of points in the buffer."""

        return int(self.coords.shape[0])

    def __len__(self) -> int:
        return self.n_points

    def preview(self, max_values: int = 21) -> str:
        """Format the first ``max_values`` coordinates, three per line."""

        flat = np.asarray(self.coords).reshape(-1)[:max_values]
        lines = []
        for start in range(0, flat.size, 3):
            lines.append(", ".join(repr(float(v)) for v in flat[start : start + 3]))
        return "\n".join(lines)


def load_points(path: PathLike, scale: float = 1.0) -> PointBuffer:
    """Read a packed point file and scale every coordinate by ``scale``.

    Raises:
        PointFileError: if the file cannot be read, ends in a partial
            float64, or holds a value count that is not a multiple of 3.
    """

    try:
        with open(path, "rb") as handle:
            raw = handle.read()
    except OSError as exc:
        raise PointFileError(path, exc.strerror or str(exc)) from exc

    trailing = len(raw) % FILE_DTYPE.itemsize
    if trailing:
        raise PointFileError(
            path,
            f"{trailing} trailing byte(s) do not form a whole float64 value",
        )

    values = np.frombuffer(raw, dtype=FILE_DTYPE)
    if values.size % 3 != 0:
        raise PointFileError(
            path,
            f"found {values.size} values, which is not a multiple of 3",
        )

    points = PointBuffer.from_flat(values.astype(np.float64), scale=scale)
    logger.debug("Loaded %d points from %s (scale=%g)", points.n_points, path, scale)
    return points


def write_points(path: PathLike, coords) -> None:
    """Write ``(N, 3)`` coordinates in the packed point-file format."""

    arr = np.asarray(coords, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"coords must have shape (n_points, 3); received {arr.shape}")
    with open(path, "wb") as handle:
        handle.write(arr.astype(FILE_DTYPE).tobytes())


__all__ = ["FILE_DTYPE", "PointBuffer", "load_points", "write_points"]
