"""
Command-line interface for ghzbench.

Usage:
    ghzbench <num_qubits> <backend> [shots]
    ghzbench 20 ibm_fez
    ghzbench 5 local 2048 --readout-error 0.02
    ghzbench-bell [backend] [shots]

Exit status: 0 on success, 1 for bad arguments, 2 when the execution
service fails.
"""
import json
import logging
import sys
from typing import Optional, Sequence

from ..config import ExperimentConfig, parse_command_line
from ..errors import ConfigError, UpstreamFailure, UsageError

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_UPSTREAM = 2

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def execute(config: ExperimentConfig, executor=None, circuit=None):
    """
    Run one experiment end to end and return its Report.

    Args:
        config: Parsed experiment configuration
        executor: SamplerExecutor to use (default: chosen from config.backend_id)
        circuit: Prebuilt circuit (default: GHZ circuit for config.qubit_count)
    """
    from ..aggregate import aggregate
    from ..circuits import build_ghz_circuit
    from ..report import summarize
    from ..runtime import make_executor

    if circuit is None:
        circuit = build_ghz_circuit(config.qubit_count)
    if executor is None:
        executor = make_executor(config)

    with executor:
        samples = executor.run(circuit, config)

    histogram = aggregate(samples, config.qubit_count)
    if histogram.rejected:
        logger.warning("%d of %d samples rejected", histogram.rejected, len(samples))
    return summarize(histogram, config.qubit_count, config.shot_count)


def _print_header(config: ExperimentConfig, title: str) -> None:
    print(title)
    print("=" * len(title))
    print(f"Backend: {config.backend_id}")
    print(f"Shots: {config.shot_count}")
    print(f"Qubits: {config.qubit_count}")
    print()


def _print_circuit(circuit, qubit_count: int) -> None:
    from ..circuits import QASM_PRINT_LIMIT, circuit_qasm, describe_circuit

    print(f"Circuit: {describe_circuit(qubit_count)}")
    print()
    if qubit_count <= QASM_PRINT_LIMIT:
        print("Circuit (QASM3):")
        print(circuit_qasm(circuit))
    else:
        print(f"(QASM3 output suppressed for circuits > {QASM_PRINT_LIMIT} qubits)")
        print()


def _run(argv: Optional[Sequence[str]], prog: str, bell: bool, executor=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    try:
        config, args = parse_command_line(argv, prog=prog, bell=bell)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(file=sys.stderr)
        print(e.usage, file=sys.stderr, end='')
        return EXIT_CONFIG
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    _configure_logging(args.verbose)

    from ..circuits import build_ghz_circuit

    circuit = build_ghz_circuit(config.qubit_count)
    if not args.json:
        title = ("Bell State Circuit Example" if bell
                 else f"{config.qubit_count}-Qubit GHZ State Example")
        _print_header(config, title)
        _print_circuit(circuit, config.qubit_count)
        print("Submitting job. Waiting for results...")

    try:
        report = execute(config, executor=executor, circuit=circuit)
    except UpstreamFailure as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_UPSTREAM

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return EXIT_OK

    print()
    print(report.render())
    if report.shortfall > 0:
        print(f"  Missing: {report.shortfall} of {report.shot_count} shots")
    print()
    if bell:
        print("Expected: ~50% |00⟩ and ~50% |11⟩ (Bell state entanglement)")
        print("(|01⟩ and |10⟩ indicate noise/errors)")
    else:
        print("Expected: ~50% all-0s and ~50% all-1s")
        print("(Other results indicate decoherence/noise)")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None, executor=None) -> int:
    """Entry point for `ghzbench <num_qubits> <backend> [shots]`."""
    return _run(argv, prog='ghzbench', bell=False, executor=executor)


def bell_main(argv: Optional[Sequence[str]] = None, executor=None) -> int:
    """Entry point for `ghzbench-bell [backend] [shots]`."""
    return _run(argv, prog='ghzbench-bell', bell=True, executor=executor)


if __name__ == '__main__':
    sys.exit(main())
