"""
ghzbench: run GHZ / Bell entanglement experiments and tabulate the outcomes.

Features:
- One entry point for any width from 2 to 127 qubits
- Runs on IBM Quantum through qiskit-ibm-runtime, or offline ('local')
- Outcome histogram that scales with distinct outcomes, not 2^n
- All-0s / all-1s / noise summary against the configured shot count

Quick Start:
    >>> from ghzbench import aggregate, summarize
    >>> hist = aggregate(["00"] * 518 + ["11"] * 506, qubit_count=2)
    >>> print(summarize(hist, qubit_count=2, shot_count=1024).render())
    Measurement Results:
    -------------------
      |00⟩: 518 (50.6%)
      |11⟩: 506 (49.4%)
    <BLANKLINE>
    Summary:
      All 0s: 518 (50.6%)
      All 1s: 506 (49.4%)
      Other (noise): 0 (0.0%)
"""
__version__ = "1.0.0"

from .errors import (
    GhzBenchError,
    ConfigError,
    UsageError,
    InvalidQubitCount,
    InvalidShotCount,
    SampleOutOfRange,
    UpstreamFailure,
)
from .config import ExperimentConfig, parse_args, parse_bell_args
from .aggregate import (
    OutcomeHistogram,
    Classification,
    aggregate,
    aggregate_sharded,
    classify,
    normalize_sample,
    reference_keys,
)
from .report import Report, OutcomeLine, summarize

__all__ = [
    # Errors
    'GhzBenchError',
    'ConfigError',
    'UsageError',
    'InvalidQubitCount',
    'InvalidShotCount',
    'SampleOutOfRange',
    'UpstreamFailure',
    # Configuration
    'ExperimentConfig',
    'parse_args',
    'parse_bell_args',
    # Aggregation
    'OutcomeHistogram',
    'Classification',
    'aggregate',
    'aggregate_sharded',
    'classify',
    'normalize_sample',
    'reference_keys',
    # Reporting
    'Report',
    'OutcomeLine',
    'summarize',
]
