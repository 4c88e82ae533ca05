"""
Execution backends: turn a circuit plus an ExperimentConfig into samples.

Two executors share one contract, run(circuit, config) -> list of per-shot
bitstrings:

- RuntimeExecutor submits to IBM Quantum through qiskit-ibm-runtime
  (service -> backend -> transpile -> SamplerV2 job -> poll -> samples).
- LocalGhzExecutor samples the ideal GHZ distribution with numpy, with
  optional readout bit-flip noise, so the pipeline runs offline.

Executors are context managers; leaving the block while a remote job is
still pending cancels it.

Usage:
    >>> with make_executor(cfg) as executor:
    ...     samples = executor.run(build_ghz_circuit(cfg.qubit_count), cfg)
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional

import numpy as np
from qiskit import QuantumCircuit
from qiskit.transpiler.preset_passmanagers import generate_preset_pass_manager
from qiskit_ibm_runtime import QiskitRuntimeService, SamplerV2

from .circuits import MEAS_REGISTER
from .config import ExperimentConfig
from .errors import UpstreamFailure

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({'INITIALIZING', 'VALIDATING', 'QUEUED', 'RUNNING'})
SUCCESS_STATUS = 'DONE'


def _status_name(status) -> str:
    """Normalize a job status (plain string or JobStatus enum) to upper case."""
    return str(getattr(status, 'name', status)).upper()


class SamplerExecutor:
    """Base class for anything that produces measurement samples."""

    def run(self, circuit: QuantumCircuit, config: ExperimentConfig) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        """Release anything still held. Safe to call more than once."""

    def __enter__(self) -> 'SamplerExecutor':
        return self

    def __exit__(self, *args) -> None:
        self.close()


class RuntimeExecutor(SamplerExecutor):
    """
    IBM Quantum Runtime executor using SamplerV2 in job mode.

    Credentials are whatever QiskitRuntimeService() resolves by itself
    (saved account or QISKIT_IBM_* environment variables).

    Args:
        service: Pre-built service; created lazily when omitted
    """

    def __init__(self, service=None):
        self._service = service
        self._job = None

    @property
    def service(self):
        if self._service is None:
            try:
                self._service = QiskitRuntimeService()
            except Exception as exc:
                raise UpstreamFailure(f"Failed to create runtime service: {exc}") from exc
        return self._service

    def run(self, circuit: QuantumCircuit, config: ExperimentConfig) -> List[str]:
        try:
            backend = self.service.backend(config.backend_id)
        except UpstreamFailure:
            raise
        except Exception as exc:
            raise UpstreamFailure(f"Backend '{config.backend_id}' not available: {exc}") from exc
        logger.info("Using backend: %s", getattr(backend, 'name', config.backend_id))

        try:
            pm = generate_preset_pass_manager(
                optimization_level=1,
                backend=backend,
                seed_transpiler=config.transpile_seed,
            )
            isa_circuit = pm.run(circuit)
        except Exception as exc:
            raise UpstreamFailure(f"Transpilation failed: {exc}") from exc
        logger.info("Circuit transpiled successfully")

        try:
            sampler = SamplerV2(mode=backend)
            self._job = sampler.run([isa_circuit], shots=config.shot_count)
        except Exception as exc:
            raise UpstreamFailure(f"Job submission failed: {exc}") from exc
        logger.info("Job %s submitted", self._job.job_id())

        self._wait(self._job, config)

        try:
            result = self._job.result()
            data = result[0].data
            samples = list(getattr(data, MEAS_REGISTER).get_bitstrings())
        except Exception as exc:
            raise UpstreamFailure(f"Failed to get results: {exc}") from exc
        finally:
            self._job = None
        return samples

    def _wait(self, job, config: ExperimentConfig) -> None:
        """Poll the job until it leaves the pending states."""
        started = time.monotonic()
        while True:
            try:
                status = _status_name(job.status())
            except Exception as exc:
                raise UpstreamFailure(f"Status poll failed: {exc}") from exc
            logger.info("Job %s status: %s", job.job_id(), status)

            if status not in PENDING_STATUSES:
                break
            if config.timeout is not None and time.monotonic() - started >= config.timeout:
                raise UpstreamFailure(
                    f"Job {job.job_id()} still {status} after {config.timeout:g}s"
                )
            logger.debug("Polling (waiting %g seconds)...", config.poll_interval)
            time.sleep(config.poll_interval)

        if status != SUCCESS_STATUS:
            message = ''
            if hasattr(job, 'error_message'):
                message = job.error_message() or ''
            self._job = None
            raise UpstreamFailure(f"Job {job.job_id()} finished with status {status} {message}".rstrip())

    def close(self) -> None:
        job, self._job = self._job, None
        if job is None:
            return
        try:
            status = _status_name(job.status())
            if status in PENDING_STATUSES:
                logger.warning("Cancelling unfinished job %s", job.job_id())
                job.cancel()
        except Exception as exc:
            logger.warning("Could not cancel job: %s", exc)


class LocalGhzExecutor(SamplerExecutor):
    """
    Offline sampler for the ideal GHZ distribution.

    Each shot is all-zeros or all-ones with equal probability; every bit is
    then flipped independently with probability `config.readout_error`.
    """

    def run(self, circuit: QuantumCircuit, config: ExperimentConfig) -> List[str]:
        if circuit is not None and circuit.num_qubits != config.qubit_count:
            raise UpstreamFailure(
                f"Circuit has {circuit.num_qubits} qubits, config says {config.qubit_count}"
            )
        rng = np.random.default_rng(config.seed)
        n, shots = config.qubit_count, config.shot_count

        ideal = rng.integers(0, 2, size=shots, dtype=np.uint8)
        bits = np.repeat(ideal[:, None], n, axis=1)
        if config.readout_error > 0:
            flips = rng.random((shots, n)) < config.readout_error
            bits ^= flips.astype(np.uint8)

        # Column i is qubit i; strings are written qubit 0 last.
        chars = (bits[:, ::-1] + ord('0')).astype(np.uint8)
        logger.info("Sampled %d shots locally", shots)
        return [row.tobytes().decode('ascii') for row in chars]


def make_executor(config: ExperimentConfig, service=None) -> SamplerExecutor:
    """Pick the executor for the configured backend."""
    if config.is_local:
        return LocalGhzExecutor()
    return RuntimeExecutor(service=service)
