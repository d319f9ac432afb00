"""Split point-pair comparisons into independent work blocks.

A cross-comparison between two point sets is cut into a ``T x T`` grid of
rectangular blocks. A self-comparison with symmetry enabled only needs the
lower triangle of that grid: block ``(i, j)`` with ``j < i`` stands in for its
mirror ``(j, i)``, and the ``(i, i)`` blocks are scanned below their own
diagonal by the kernel.
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence


class IndexRange(NamedTuple):
    """Half-open range ``[start, end)`` of point indices."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return max(0, self.end - self.start)


class WorkBlock(NamedTuple):
    """One unit of parallel work: a range of each point set plus a flag.

    ``diagonal`` is true only for the ``(i, i)`` blocks of a symmetric
    self-comparison, where both ranges are identical.
    """

    start_1: int
    end_1: int
    start_2: int
    end_2: int
    diagonal: bool = False

    @property
    def range_1(self) -> IndexRange:
        return IndexRange(self.start_1, self.end_1)

    @property
    def range_2(self) -> IndexRange:
        return IndexRange(self.start_2, self.end_2)

    @property
    def size_1(self) -> int:
        return max(0, self.end_1 - self.start_1)

    @property
    def size_2(self) -> int:
        return max(0, self.end_2 - self.start_2)

    def describe(self) -> str:
        """Human-readable ``a..b x c..d`` label used in progress messages."""

        label = f"{self.start_1}..{self.end_1} x {self.start_2}..{self.end_2}"
        return f"{label} (diagonal)" if self.diagonal else label


def chunk_edges(n: int, t: int) -> List[int]:
    """Return ``t + 1`` edges ``floor(i * n / t)`` splitting ``[0, n)``."""

    if n < 0:
        raise ValueError(f"n must be >= 0, received {n}")
    if t <= 0:
        return []
    return [(i * n) // t for i in range(t + 1)]


def chunk_ranges(n: int, t: int) -> List[IndexRange]:
    """Split ``[0, n)`` into ``t`` contiguous, near-equal ranges."""

    edges = chunk_edges(n, t)
    return [IndexRange(lo, hi) for lo, hi in zip(edges[:-1], edges[1:])]


def build_work_blocks(
    n_1: int,
    n_2: int,
    thread_count: int,
    diagonal: bool = False,
) -> List[WorkBlock]:
    """Enumerate the work blocks covering every required point pair.

    With ``diagonal=False`` every ordered pair ``(p, q)``, ``p`` from set 1
    and ``q`` from set 2, lies in exactly one block. With ``diagonal=True``
    both sets are the same ``n_1`` points and every unordered pair ``p != q``
    lies in exactly one block, self-pairs in the diagonal blocks.

    Empty ranges (more chunks than points) produce no block. ``n = 0`` or
    ``thread_count = 0`` produce an empty list.
    """

    if diagonal and n_1 != n_2:
        raise ValueError(
            "diagonal partitioning needs one point set; "
            f"received sizes {n_1} and {n_2}"
        )
    if thread_count <= 0 or n_1 <= 0 or n_2 <= 0:
        return []

    ranges_1 = [r for r in chunk_ranges(n_1, thread_count) if r.size]
    if diagonal:
        blocks = []
        for i, outer in enumerate(ranges_1):
            for inner in ranges_1[: i + 1]:
                blocks.append(
                    WorkBlock(
                        outer.start,
                        outer.end,
                        inner.start,
                        inner.end,
                        diagonal=inner == outer,
                    )
                )
        return blocks

    ranges_2 = [r for r in chunk_ranges(n_2, thread_count) if r.size]
    return [
        WorkBlock(r1.start, r1.end, r2.start, r2.end, diagonal=False)
        for r1 in ranges_1
        for r2 in ranges_2
    ]


def count_covered_pairs(blocks: Sequence[WorkBlock], symmetric: bool = False) -> int:
    """Return how many ordered pairs ``blocks`` account for.

    In symmetric mode an off-diagonal block counts each pair twice and a
    diagonal block of ``m`` points accounts for all ``m * m`` ordered pairs.
    """

    total = 0
    for block in blocks:
        if block.diagonal:
            total += block.size_1 * block.size_1
        elif symmetric:
            total += 2 * block.size_1 * block.size_2
        else:
            total += block.size_1 * block.size_2
    return total


__all__ = [
    "IndexRange",
    "WorkBlock",
    "build_work_blocks",
    "chunk_edges",
    "chunk_ranges",
    "count_covered_pairs",
]
