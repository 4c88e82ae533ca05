"""
Error taxonomy for ghzbench.

Configuration errors are fatal and raised before any remote call is made.
A malformed sample is recoverable: the aggregator drops it and carries on.
Upstream failures come from the execution service.
"""
from typing import Optional


class GhzBenchError(Exception):
    """Base class for all ghzbench errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigError(GhzBenchError, ValueError):
    """Invalid experiment configuration."""


class UsageError(ConfigError):
    """Missing or malformed command-line arguments."""
    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class InvalidQubitCount(ConfigError):
    """Qubit count is non-numeric or outside the supported range."""


class InvalidShotCount(ConfigError):
    """Shot count is non-numeric or not positive."""


# ---------------------------------------------------------------------------
# Samples and execution
# ---------------------------------------------------------------------------

class SampleOutOfRange(GhzBenchError, ValueError):
    """A single measurement sample cannot be mapped to a valid outcome."""
    def __init__(self, sample, qubit_count: int, reason: Optional[str] = None) -> None:
        detail = reason or f"outside [0, 2^{qubit_count} - 1]"
        super().__init__(f"Sample {sample!r} rejected: {detail}")
        self.sample = sample
        self.qubit_count = qubit_count


class UpstreamFailure(GhzBenchError, RuntimeError):
    """The execution service or backend failed to produce samples."""
