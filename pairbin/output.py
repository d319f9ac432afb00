"""Rows, text rendering and writing of the linear histogram."""

from __future__ import annotations

import logging
import sys
from typing import List, NamedTuple, Optional

import numpy as np

from .binning import BinningGeometry
from .errors import OutputError
from .points import PathLike

logger = logging.getLogger(__name__)


class HistogramRow(NamedTuple):
    """One linear bin: ``[start_r, end_r)`` and its pair count."""

    start_r: float
    end_r: float
    count: int


def histogram_rows(linear, geometry: BinningGeometry) -> List[HistogramRow]:
    """Pair every linear bin count with its radius bounds."""

    counts = np.asarray(linear, dtype=np.uint64).reshape(-1)
    rows = []
    for i, count in enumerate(counts):
        rows.append(
            HistogramRow(
                start_r=float(i) * geometry.bin_size,
                end_r=float(i + 1) * geometry.bin_size,
                count=int(count),
            )
        )
    return rows


def _format_radius(value: float) -> str:
    # Integral radii print without a trailing ".0".
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_histogram(linear, geometry: BinningGeometry) -> str:
    """Render ``start, end, count`` lines, one per linear bin."""

    return "\n".join(
        f"{_format_radius(row.start_r)}, {_format_radius(row.end_r)}, {row.count}"
        for row in histogram_rows(linear, geometry)
    )


def write_histogram(text: str, path: Optional[PathLike] = None) -> None:
    """Write ``text`` to ``path``, or to standard output when ``path`` is None.

    Raises:
        OutputError: if the destination cannot be written.
    """

    payload = text if text.endswith("\n") or not text else text + "\n"
    if path is None:
        try:
            sys.stdout.write(payload)
            sys.stdout.flush()
        except OSError as exc:
            raise OutputError(None, str(exc)) from exc
        return

    try:
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(payload)
    except OSError as exc:
        raise OutputError(path, exc.strerror or str(exc)) from exc
    logger.debug("Wrote histogram to %s", path)


__all__ = ["HistogramRow", "format_histogram", "histogram_rows", "write_histogram"]
