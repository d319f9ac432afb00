"""Command-line entry point: ``pairbin FILE_1 FILE_2 [options]``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from .config import (
    DEFAULT_BIN_SIZE,
    DEFAULT_MAX_R,
    DEFAULT_THREAD_COUNT,
    HistogramConfig,
)
from .errors import ConfigurationError, OutputError, PointFileError, WorkerError
from .kernel import DEFAULT_TILE_SIZE
from .output import format_histogram, write_histogram
from .points import load_points
from .runner import compute_histogram
from .timing import Stopwatch, pairs_summary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairbin",
        description="Histogram pairwise distances between two packed 3-D point files.",
    )
    parser.add_argument("filename_1", help="first point file (little-endian float64 x, y, z)")
    parser.add_argument("filename_2", help="second point file; may name the first file again")
    parser.add_argument(
        "-d", "--delta-r", type=float, default=DEFAULT_BIN_SIZE, metavar="DELTA_R",
        help="linear bin width",
    )
    parser.add_argument(
        "-m", "--max-r", type=float, default=DEFAULT_MAX_R, metavar="MAX_R",
        help="largest separation to histogram",
    )
    parser.add_argument(
        "-n", "--n-threads", type=int, default=DEFAULT_THREAD_COUNT, metavar="N_THREADS",
        help="chunks per point set",
    )
    parser.add_argument(
        "--assume-different", action="store_true",
        help="never exploit symmetry, even when both files are the same",
    )
    parser.add_argument(
        "--tile-size", type=int, default=DEFAULT_TILE_SIZE, help=argparse.SUPPRESS
    )
    parser.add_argument("-t", "--timer", action="store_true", help="report elapsed time")
    parser.add_argument("-o", "--output", default=None, metavar="OUTPUT_FILE")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _same_file(path_1: str, path_2: str) -> bool:
    try:
        return os.path.samefile(path_1, path_2)
    except OSError:
        return os.path.abspath(path_1) == os.path.abspath(path_2)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s",
    )

    config = HistogramConfig(
        bin_size=args.delta_r,
        max_r=args.max_r,
        thread_count=args.n_threads,
        assume_different=args.assume_different,
        tile_size=args.tile_size,
        verbose=args.verbose,
        timer=args.timer,
    )
    try:
        config.validate()
        geometry = config.geometry()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    stopwatch = Stopwatch()
    if config.verbose:
        logger.info("%s cores available", os.cpu_count() or 1)

    try:
        points_1 = load_points(args.filename_1, geometry.scale)
        if _same_file(args.filename_1, args.filename_2):
            points_2 = points_1
        else:
            points_2 = load_points(args.filename_2, geometry.scale)
    except PointFileError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    if config.verbose:
        logger.info("First points of %s:\n%s", args.filename_1, points_1.preview())

    try:
        result = compute_histogram(points_1, points_2, config)
    except WorkerError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    text = format_histogram(result.linear, geometry)
    status = EXIT_OK
    try:
        write_histogram(text, args.output)
    except OutputError as exc:
        logger.error("%s", exc)
        # The histogram is still valid; fall back to stdout.
        write_histogram(text, None)
        status = EXIT_FAILURE

    if config.timer:
        print(pairs_summary(result.binned_pairs, stopwatch.stop()))
    return status


if __name__ == "__main__":
    sys.exit(main())
