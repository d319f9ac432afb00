"""Fork/join orchestration of the counting kernel.

Every work block becomes one delayed task. A single ``dask.compute`` call on
the threaded scheduler launches them all and returns only once every task has
finished; that call is the join barrier of a run. Tasks share the point
buffers by reference and each owns its partial histogram until the join.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, NamedTuple, Optional

import dask
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Callable
from jaxtyping import Array, jaxtyped

from .binning import BinningGeometry
from .config import HistogramConfig
from .dtypes import COUNT_DTYPE
from .errors import WorkerError
from .kernel import PartialHistogram, count_block
from .partition import WorkBlock, build_work_blocks
from .points import PointBuffer
from .reduce import linearize, merge_histograms, merged_dropped, tail_count

logger = logging.getLogger(__name__)


class BlockEvent(NamedTuple):
    """Progress notification for a single work block."""

    status: str
    index: int
    total: int
    block: WorkBlock
    dropped: int = 0


class BlockOutcome(NamedTuple):
    """Result of one task: a partial histogram or the reason it failed."""

    block: WorkBlock
    partial: Optional[PartialHistogram]
    error: Optional[BaseException]

    @property
    def ok(self) -> bool:
        return self.error is None


class HistogramResult(NamedTuple):
    """Terminal artifacts of a run."""

    geometry: BinningGeometry
    squared: Array
    linear: Array
    # Pairs beyond max_r plus pairs in squared bins past n_linear_bins**2.
    dropped_pairs: int
    n_blocks: int
    symmetric: bool

    @property
    def binned_pairs(self) -> int:
        """Sum of the linear histogram."""

        return int(jnp.sum(self.linear, dtype=COUNT_DTYPE))

    @property
    def total_pairs(self) -> int:
        """Binned plus dropped pairs; ``N1 * N2`` (or ``N**2``) for a full run."""

        return self.binned_pairs + self.dropped_pairs


def log_block_event(
    event: BlockEvent,
    *,
    level: int = logging.INFO,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a block event using the provided (or module) logger."""

    target_logger = logger or logging.getLogger(__name__)
    if event.status == "started":
        target_logger.log(
            level,
            "Starting block %d/%d for chunk %s",
            event.index + 1,
            event.total,
            event.block.describe(),
        )
    else:
        target_logger.log(
            level,
            "Block %d/%d %s for chunk %s (dropped=%d)",
            event.index + 1,
            event.total,
            event.status,
            event.block.describe(),
            event.dropped,
        )


def _emit_block_event(
    event: BlockEvent,
    *,
    verbose: bool,
    progress_logger: Optional[Callable[[BlockEvent], None]],
) -> None:
    if verbose:
        log_block_event(event, logger=logger)
    if progress_logger is None:
        return
    try:
        progress_logger(event)
    except Exception:
        logger.exception("progress_logger raised")


def is_self_comparison(
    points_1: PointBuffer,
    points_2: Optional[PointBuffer],
    config: HistogramConfig,
) -> bool:
    """Return whether the symmetric (triangular) sweep applies."""

    if config.assume_different:
        return False
    return points_2 is None or points_2 is points_1


def _collect_outcomes(
    blocks: List[WorkBlock],
    points_1: PointBuffer,
    points_2: PointBuffer,
    geometry: BinningGeometry,
    *,
    symmetric: bool,
    config: HistogramConfig,
    progress_logger: Optional[Callable[[BlockEvent], None]],
) -> List[BlockOutcome]:
    total = len(blocks)

    # Tasks receive only the block position; buffers are captured, never copied.
    def run_block(index: int) -> BlockOutcome:
        block = blocks[index]
        _emit_block_event(
            BlockEvent("started", index, total, block),
            verbose=config.verbose,
            progress_logger=progress_logger,
        )
        try:
            partial_hist = count_block(
                block,
                points_1,
                points_2,
                geometry,
                symmetric=symmetric,
                tile_size=config.tile_size,
            )
        except Exception as exc:
            _emit_block_event(
                BlockEvent("failed", index, total, block),
                verbose=config.verbose,
                progress_logger=progress_logger,
            )
            return BlockOutcome(block=block, partial=None, error=exc)
        _emit_block_event(
            BlockEvent("finished", index, total, block, partial_hist.dropped),
            verbose=config.verbose,
            progress_logger=progress_logger,
        )
        return BlockOutcome(block=block, partial=partial_hist, error=None)

    tasks = [dask.delayed(run_block, pure=False)(index) for index in range(total)]
    # All blocks run at once, one thread each; the pool is closed at the join.
    with ThreadPoolExecutor(max_workers=total) as pool:
        outcomes = dask.compute(*tasks, scheduler="threads", pool=pool)
    return list(outcomes)


def _require_success(outcomes: List[BlockOutcome]) -> List[PartialHistogram]:
    failures = [outcome for outcome in outcomes if not outcome.ok]
    if failures:
        first = failures[0]
        raise WorkerError(
            first.block,
            f"{type(first.error).__name__}: {first.error}",
            failed=len(failures),
        ) from first.error
    return [outcome.partial for outcome in outcomes]


@jaxtyped(typechecker=beartype)
def compute_histogram(
    points_1: PointBuffer,
    points_2: Optional[PointBuffer] = None,
    config: Optional[HistogramConfig] = None,
    *,
    progress_logger: Optional[Callable[[BlockEvent], None]] = None,
) -> HistogramResult:
    """Histogram the pairwise separations of two point sets.

    Passing ``points_2=None`` (or the very same buffer twice) compares a set
    with itself; unless ``config.assume_different`` is set, that comparison
    sweeps only the lower triangle of the block grid and doubles its counts,
    which gives the same histogram as the full ordered-pair sweep.

    Raises:
        ConfigurationError: if ``config`` is invalid.
        WorkerError: if any counting task fails; no partial result survives.
    """

    config = (config or HistogramConfig()).validate()
    geometry = config.geometry()
    symmetric = is_self_comparison(points_1, points_2, config)
    if points_2 is None:
        points_2 = points_1

    blocks = build_work_blocks(
        points_1.n_points,
        points_2.n_points,
        config.thread_count,
        diagonal=symmetric,
    )
    if config.verbose:
        logger.info(
            "Comparing %d x %d points in %d block(s) (symmetric=%s)",
            points_1.n_points,
            points_2.n_points,
            len(blocks),
            symmetric,
        )

    partials: List[PartialHistogram] = []
    if blocks:
        outcomes = _collect_outcomes(
            blocks,
            points_1,
            points_2,
            geometry,
            symmetric=symmetric,
            config=config,
            progress_logger=progress_logger,
        )
        partials = _require_success(outcomes)

    squared = merge_histograms(partials, geometry)
    linear = linearize(squared, geometry)
    dropped = merged_dropped(partials) + tail_count(squared, geometry)
    return HistogramResult(
        geometry=geometry,
        squared=squared,
        linear=linear,
        dropped_pairs=dropped,
        n_blocks=len(blocks),
        symmetric=symmetric,
    )


__all__ = [
    "BlockEvent",
    "BlockOutcome",
    "HistogramResult",
    "compute_histogram",
    "is_self_comparison",
    "log_block_event",
]
