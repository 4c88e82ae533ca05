"""
Tests for the execution backends.

The IBM Quantum path is exercised against stand-in service, sampler and
job objects; nothing here talks to the network.
"""

import itertools

import pytest

import ghzbench.runtime as runtime
from ghzbench.circuits import build_ghz_circuit
from ghzbench.config import ExperimentConfig
from ghzbench.errors import UpstreamFailure
from ghzbench.runtime import (
    LocalGhzExecutor,
    RuntimeExecutor,
    SamplerExecutor,
    make_executor,
)


# ═══════════════════════════════════════════════════════════════════
# Stand-ins for qiskit-ibm-runtime objects
# ═══════════════════════════════════════════════════════════════════


class FakeBitArray:
    def __init__(self, bitstrings):
        self._bitstrings = bitstrings

    def get_bitstrings(self):
        return list(self._bitstrings)


class FakeData:
    def __init__(self, bitstrings):
        self.meas = FakeBitArray(bitstrings)


class FakePubResult:
    def __init__(self, bitstrings):
        self.data = FakeData(bitstrings)


class FakeJob:
    def __init__(self, statuses, bitstrings, error=None):
        self._statuses = iter(statuses)
        self._last = None
        self._bitstrings = bitstrings
        self._error = error
        self.cancelled = False

    def job_id(self):
        return "job-123"

    def status(self):
        self._last = next(self._statuses, self._last)
        return self._last

    def result(self):
        return [FakePubResult(self._bitstrings)]

    def error_message(self):
        return self._error

    def cancel(self):
        self.cancelled = True


class FakeBackend:
    name = "ibm_fake"


class FakeService:
    def __init__(self, known=("ibm_fake",)):
        self.known = known

    def backend(self, name):
        if name not in self.known:
            raise KeyError(f"No backend matches the criteria: {name}")
        return FakeBackend()


class FakePassManager:
    def run(self, circuit):
        return circuit


@pytest.fixture
def fake_runtime(monkeypatch):
    """Patch the SDK entry points and return a holder for the submitted job."""
    state = {"job": None, "sleeps": [], "shots": None}

    class FakeSampler:
        def __init__(self, mode):
            assert isinstance(mode, FakeBackend)

        def run(self, pubs, shots):
            state["shots"] = shots
            return state["job"]

    monkeypatch.setattr(runtime, "SamplerV2", FakeSampler)
    monkeypatch.setattr(runtime, "generate_preset_pass_manager",
                        lambda **kwargs: FakePassManager())
    monkeypatch.setattr(runtime.time, "sleep", lambda s: state["sleeps"].append(s))
    return state


def _config(**kwargs):
    params = dict(qubit_count=2, backend_id="ibm_fake", shot_count=4, poll_interval=10.0)
    params.update(kwargs)
    return ExperimentConfig(**params)


# ═══════════════════════════════════════════════════════════════════
# RuntimeExecutor
# ═══════════════════════════════════════════════════════════════════


class TestRuntimeExecutor:

    def test_polls_until_done(self, fake_runtime):
        fake_runtime["job"] = FakeJob(["QUEUED", "RUNNING", "DONE"], ["00", "11", "11", "00"])
        cfg = _config()
        with RuntimeExecutor(service=FakeService()) as executor:
            samples = executor.run(build_ghz_circuit(2), cfg)
        assert samples == ["00", "11", "11", "00"]
        assert fake_runtime["sleeps"] == [10.0, 10.0]
        assert fake_runtime["shots"] == 4

    def test_enum_status(self, fake_runtime):
        class Status:
            def __init__(self, name):
                self.name = name

        fake_runtime["job"] = FakeJob([Status("QUEUED"), Status("DONE")], ["00"])
        samples = RuntimeExecutor(service=FakeService()).run(build_ghz_circuit(2), _config())
        assert samples == ["00"]

    def test_unknown_backend(self, fake_runtime):
        with pytest.raises(UpstreamFailure, match="ibm_nowhere"):
            RuntimeExecutor(service=FakeService()).run(
                build_ghz_circuit(2), _config(backend_id="ibm_nowhere"))

    def test_job_error(self, fake_runtime):
        fake_runtime["job"] = FakeJob(["QUEUED", "ERROR"], [], error="calibration failed")
        with pytest.raises(UpstreamFailure, match="ERROR calibration failed"):
            RuntimeExecutor(service=FakeService()).run(build_ghz_circuit(2), _config())

    def test_timeout_cancels_job(self, fake_runtime, monkeypatch):
        clock = itertools.count(0, 10)
        monkeypatch.setattr(runtime.time, "monotonic", lambda: next(clock))
        job = FakeJob(itertools.repeat("QUEUED"), [])
        fake_runtime["job"] = job

        with pytest.raises(UpstreamFailure, match="still QUEUED"):
            with RuntimeExecutor(service=FakeService()) as executor:
                executor.run(build_ghz_circuit(2), _config(timeout=15))
        assert job.cancelled

    def test_finished_job_not_cancelled(self, fake_runtime):
        job = FakeJob(["DONE"], ["01"])
        fake_runtime["job"] = job
        with RuntimeExecutor(service=FakeService()) as executor:
            executor.run(build_ghz_circuit(2), _config())
        assert not job.cancelled

    def test_service_creation_failure(self, monkeypatch):
        def broken():
            raise RuntimeError("no saved account")

        monkeypatch.setattr(runtime, "QiskitRuntimeService", broken)
        with pytest.raises(UpstreamFailure, match="no saved account"):
            RuntimeExecutor().run(build_ghz_circuit(2), _config())


# ═══════════════════════════════════════════════════════════════════
# LocalGhzExecutor
# ═══════════════════════════════════════════════════════════════════


class TestLocalGhzExecutor:

    def test_ideal_samples(self):
        cfg = ExperimentConfig(5, "local", shot_count=300, seed=1)
        samples = LocalGhzExecutor().run(build_ghz_circuit(5), cfg)
        assert len(samples) == 300
        assert set(samples) == {"00000", "11111"}

    def test_reproducible(self):
        cfg = ExperimentConfig(3, "local", shot_count=100, seed=42, readout_error=0.1)
        first = LocalGhzExecutor().run(None, cfg)
        second = LocalGhzExecutor().run(None, cfg)
        assert first == second

    def test_readout_noise(self):
        cfg = ExperimentConfig(4, "local", shot_count=2000, seed=3, readout_error=0.1)
        samples = LocalGhzExecutor().run(build_ghz_circuit(4), cfg)
        noisy = [s for s in samples if s not in ("0000", "1111")]
        # P(at least one flip) = 1 - 0.9^4 ≈ 0.34
        assert 0.25 < len(noisy) / len(samples) < 0.45

    def test_wide_register(self):
        cfg = ExperimentConfig(127, "local", shot_count=50, seed=0)
        samples = LocalGhzExecutor().run(None, cfg)
        assert all(len(s) == 127 for s in samples)
        assert set(samples) <= {"0" * 127, "1" * 127}

    def test_width_mismatch(self):
        cfg = ExperimentConfig(3, "local")
        with pytest.raises(UpstreamFailure):
            LocalGhzExecutor().run(build_ghz_circuit(2), cfg)


class TestMakeExecutor:

    def test_local(self):
        assert isinstance(make_executor(ExperimentConfig(2, "local")), LocalGhzExecutor)

    def test_remote_is_lazy(self):
        """No service is created until run() is called."""
        executor = make_executor(ExperimentConfig(2, "ibm_fez"))
        assert isinstance(executor, RuntimeExecutor)
        assert executor._service is None

    def test_base_class(self):
        with pytest.raises(NotImplementedError):
            SamplerExecutor().run(None, ExperimentConfig(2, "local"))
