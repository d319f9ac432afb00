"""Wall-clock timing and compact duration formatting."""

from __future__ import annotations

import time
from typing import Optional

_UNITS = (("d", 86_400), ("h", 3_600), ("m", 60), ("s", 1))


def format_dhms(seconds: float) -> str:
    """Format whole seconds as days/hours/minutes/seconds, e.g. ``1h1m1s``.

    Zero-valued units are omitted; a duration under one second is ``0s``.
    """

    if seconds < 0:
        raise ValueError(f"seconds must be >= 0, received {seconds}")
    remaining = int(seconds)
    parts = []
    for suffix, size in _UNITS:
        value, remaining = divmod(remaining, size)
        if value:
            parts.append(f"{value}{suffix}")
    return "".join(parts) or "0s"


class Stopwatch:
    """Measure elapsed wall-clock time from construction or ``start()``."""

    def __init__(self) -> None:
        self._start: float = time.perf_counter()
        self._stop: Optional[float] = None

    def start(self) -> "Stopwatch":
        self._start = time.perf_counter()
        self._stop = None
        return self

    def stop(self) -> float:
        self._stop = time.perf_counter()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        end = self._stop if self._stop is not None else time.perf_counter()
        return end - self._start

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()


def pairs_summary(n_pairs: int, seconds: float) -> str:
    """Return the timer line reported at the end of a run."""

    return f"Processed {n_pairs} pairs in {format_dhms(seconds)}"


__all__ = ["Stopwatch", "format_dhms", "pairs_summary"]
