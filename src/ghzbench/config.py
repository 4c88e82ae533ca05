"""
Experiment configuration.

Turns invocation arguments into an immutable ExperimentConfig:

    >>> from ghzbench.config import parse_args
    >>> cfg = parse_args(["20", "ibm_fez"])
    >>> cfg.qubit_count, cfg.backend_id, cfg.shot_count
    (20, 'ibm_fez', 1024)

Parsing never exits the interpreter. Missing arguments raise UsageError
(carrying the usage block for the caller to print), out-of-range values
raise InvalidQubitCount / InvalidShotCount.
"""
from __future__ import annotations

import argparse
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .errors import ConfigError, InvalidQubitCount, InvalidShotCount, UsageError

MIN_QUBITS = 2
MAX_QUBITS = 127
DEFAULT_SHOTS = 1024
DEFAULT_BELL_BACKEND = "ibm_fez"
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_TRANSPILE_SEED = 42

GHZ_USAGE = """\
Usage: {prog} <num_qubits> <backend> [shots]

Arguments:
  num_qubits  Number of qubits in the GHZ state ({min}-{max})
  backend     IBM Quantum backend name (e.g., ibm_fez, ibm_torino) or 'local'
  shots       Number of shots (default: {shots})

Examples:
  {prog} 20 ibm_fez
  {prog} 50 ibm_torino 2048
  {prog} 5 local
"""

BELL_USAGE = """\
Usage: {prog} [backend] [shots]

Arguments:
  backend     IBM Quantum backend name (default: {backend}) or 'local'
  shots       Number of shots (default: {shots})
"""


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Immutable description of one sampling run.

    Attributes:
        qubit_count: Width of the GHZ state, 2..127
        backend_id: Execution target name; 'local' runs offline
        shot_count: Number of shots requested from the backend
        poll_interval: Seconds between job status polls
        timeout: Give up waiting for the job after this many seconds (None = wait)
        transpile_seed: Seed handed to the transpiler
        readout_error: Bit-flip probability, local sampler only
        seed: RNG seed, local sampler only
    """
    qubit_count: int
    backend_id: str
    shot_count: int = DEFAULT_SHOTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: Optional[float] = None
    transpile_seed: int = DEFAULT_TRANSPILE_SEED
    readout_error: float = 0.0
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check every field against its allowed range."""
        check_qubit_count(self.qubit_count)
        check_shot_count(self.shot_count)
        if not isinstance(self.backend_id, str) or not self.backend_id.strip():
            raise ConfigError("backend must be a non-empty identifier")
        if not _positive_finite(self.poll_interval):
            raise ConfigError(f"poll interval must be > 0, got {self.poll_interval}")
        if self.timeout is not None and not _positive_finite(self.timeout):
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if not 0.0 <= self.readout_error <= 1.0:
            raise ConfigError(f"readout error must be in [0,1], got {self.readout_error}")

    @property
    def is_local(self) -> bool:
        return self.backend_id == "local"


def _positive_finite(value) -> bool:
    # rejects NaN and inf
    return math.isfinite(value) and value > 0


def check_qubit_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQubitCount(f"num_qubits must be an integer, got {value!r}")
    if value < MIN_QUBITS or value > MAX_QUBITS:
        raise InvalidQubitCount(
            f"num_qubits must be between {MIN_QUBITS} and {MAX_QUBITS}, got {value}"
        )
    return value


def check_shot_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidShotCount(f"shots must be a positive integer, got {value!r}")
    return value


def parse_qubit_count(text: str) -> int:
    """Parse the num_qubits argument."""
    try:
        value = int(text)
    except (TypeError, ValueError):
        raise InvalidQubitCount(f"num_qubits must be an integer, got {text!r}") from None
    return check_qubit_count(value)


def parse_shot_count(text: Optional[str]) -> int:
    """Parse the optional shots argument; absent means DEFAULT_SHOTS."""
    if text is None:
        return DEFAULT_SHOTS
    try:
        value = int(text)
    except (TypeError, ValueError):
        raise InvalidShotCount(f"shots must be a positive integer, got {text!r}") from None
    return check_shot_count(value)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting."""

    def __init__(self, *args, usage_text: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.usage_text = usage_text

    def error(self, message):
        raise UsageError(message, usage=self.usage_text)


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--poll-interval', type=float, default=DEFAULT_POLL_INTERVAL,
                        help='Seconds between job status polls')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Stop waiting for the job after this many seconds')
    parser.add_argument('--seed', type=int, default=None,
                        help='RNG seed for the local sampler')
    parser.add_argument('--readout-error', type=float, default=0.0,
                        help='Bit-flip probability for the local sampler')
    parser.add_argument('--json', action='store_true',
                        help='Print the report as JSON')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='More logging (-v info, -vv debug)')


def build_parser(prog: str = 'ghzbench') -> argparse.ArgumentParser:
    """Parser for the generalized N-qubit program."""
    usage_text = GHZ_USAGE.format(prog=prog, min=MIN_QUBITS, max=MAX_QUBITS,
                                  shots=DEFAULT_SHOTS)
    parser = _ArgumentParser(
        prog=prog,
        description='Prepare an N-qubit GHZ state and tabulate the measurement outcomes',
        usage_text=usage_text,
    )
    parser.add_argument('num_qubits', help=f'Number of qubits ({MIN_QUBITS}-{MAX_QUBITS})')
    parser.add_argument('backend', help="Backend name, or 'local'")
    parser.add_argument('shots', nargs='?', default=None,
                        help=f'Number of shots (default: {DEFAULT_SHOTS})')
    _add_run_options(parser)
    return parser


def build_bell_parser(prog: str = 'ghzbench-bell') -> argparse.ArgumentParser:
    """Parser for the fixed two-qubit Bell program."""
    usage_text = BELL_USAGE.format(prog=prog, backend=DEFAULT_BELL_BACKEND,
                                   shots=DEFAULT_SHOTS)
    parser = _ArgumentParser(
        prog=prog,
        description='Prepare a Bell state and tabulate the measurement outcomes',
        usage_text=usage_text,
    )
    parser.add_argument('backend', nargs='?', default=DEFAULT_BELL_BACKEND,
                        help=f"Backend name, or 'local' (default: {DEFAULT_BELL_BACKEND})")
    parser.add_argument('shots', nargs='?', default=None,
                        help=f'Number of shots (default: {DEFAULT_SHOTS})')
    _add_run_options(parser)
    return parser


def _config_from_namespace(ns: argparse.Namespace, qubit_count: int,
                           usage_text: str) -> ExperimentConfig:
    if not ns.backend.strip():
        raise UsageError("backend must be a non-empty identifier", usage=usage_text)
    return ExperimentConfig(
        qubit_count=qubit_count,
        backend_id=ns.backend,
        shot_count=parse_shot_count(ns.shots),
        poll_interval=ns.poll_interval,
        timeout=ns.timeout,
        readout_error=ns.readout_error,
        seed=ns.seed,
    )


def parse_command_line(args: Sequence[str], prog: str = 'ghzbench',
                       bell: bool = False) -> Tuple[ExperimentConfig, argparse.Namespace]:
    """
    Parse arguments into a config plus the raw namespace.

    The namespace carries the output options (--json, --verbose) that are
    not part of the experiment itself.
    """
    parser = build_bell_parser(prog) if bell else build_parser(prog)
    ns = parser.parse_args(list(args))
    qubit_count = 2 if bell else parse_qubit_count(ns.num_qubits)
    return _config_from_namespace(ns, qubit_count, parser.usage_text), ns


def parse_args(args: Sequence[str]) -> ExperimentConfig:
    """Parse `<num_qubits> <backend> [shots]` into an ExperimentConfig."""
    return parse_command_line(args)[0]


def parse_bell_args(args: Sequence[str]) -> ExperimentConfig:
    """Parse `[backend] [shots]` into a two-qubit ExperimentConfig."""
    return parse_command_line(args, prog='ghzbench-bell', bell=True)[0]
