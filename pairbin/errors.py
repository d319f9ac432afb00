"""Exception hierarchy for pairbin runs."""

from __future__ import annotations

from typing import Any, Optional


class PairbinError(Exception):
    """Base class for every error raised by pairbin."""


class ConfigurationError(PairbinError, ValueError):
    """Raised when a histogram parameter is out of its valid domain."""

    def __init__(self, parameter: str, value: Any, requirement: str) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"{parameter} must be {requirement}, received {value!r}")


class PointFileError(PairbinError):
    """Raised when a point file cannot be loaded into a point buffer."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"failed to load points from {self.path}: {reason}")


class WorkerError(PairbinError, RuntimeError):
    """Raised when a counting task fails; the whole run is discarded."""

    def __init__(self, block: Any, reason: str, failed: int = 1) -> None:
        self.block = block
        self.reason = reason
        self.failed = failed
        super().__init__(
            f"counting failed for block {block} ({failed} block(s) failed): {reason}"
        )


class OutputError(PairbinError):
    """Raised when a formatted histogram cannot be written."""

    def __init__(self, path: Optional[object], reason: str) -> None:
        self.path = None if path is None else str(path)
        self.reason = reason
        target = "stdout" if self.path is None else self.path
        super().__init__(f"failed to write histogram to {target}: {reason}")


__all__ = [
    "ConfigurationError",
    "OutputError",
    "PairbinError",
    "PointFileError",
    "WorkerError",
]
