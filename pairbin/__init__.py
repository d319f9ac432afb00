"""pairbin: parallel pairwise-distance histograms for two-point statistics."""

from jax import config as _jax_config

# Coordinates are float64 and histogram counters uint64.
_jax_config.update("jax_enable_x64", True)

from .binning import (
    BinningGeometry,
    clip_square_bins,
    linear_bin_range,
    square_bin_index,
)
from .config import HistogramConfig
from .dtypes import COORD_DTYPE, COUNT_DTYPE, INDEX_DTYPE, as_count, as_index
from .errors import (
    ConfigurationError,
    OutputError,
    PairbinError,
    PointFileError,
    WorkerError,
)
from .kernel import DEFAULT_TILE_SIZE, PartialHistogram, count_block
from .output import HistogramRow, format_histogram, histogram_rows, write_histogram
from .partition import (
    IndexRange,
    WorkBlock,
    build_work_blocks,
    chunk_edges,
    chunk_ranges,
    count_covered_pairs,
)
from .points import PointBuffer, load_points, write_points
from .reduce import linearize, merge_histograms, merged_dropped, tail_count
from .runner import (
    BlockEvent,
    BlockOutcome,
    HistogramResult,
    compute_histogram,
    log_block_event,
)
from .timing import Stopwatch, format_dhms

__all__ = [
    "COORD_DTYPE",
    "COUNT_DTYPE",
    "DEFAULT_TILE_SIZE",
    "INDEX_DTYPE",
    "BinningGeometry",
    "BlockEvent",
    "BlockOutcome",
    "ConfigurationError",
    "HistogramConfig",
    "HistogramResult",
    "HistogramRow",
    "IndexRange",
    "OutputError",
    "PairbinError",
    "PartialHistogram",
    "PointBuffer",
    "PointFileError",
    "Stopwatch",
    "WorkBlock",
    "WorkerError",
    "as_count",
    "as_index",
    "build_work_blocks",
    "chunk_edges",
    "chunk_ranges",
    "clip_square_bins",
    "compute_histogram",
    "count_block",
    "count_covered_pairs",
    "format_dhms",
    "format_histogram",
    "histogram_rows",
    "linear_bin_range",
    "linearize",
    "load_points",
    "log_block_event",
    "merge_histograms",
    "merged_dropped",
    "square_bin_index",
    "tail_count",
    "write_histogram",
    "write_points",
]
