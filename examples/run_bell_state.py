"""Example: sample a Bell state offline and print the ghzbench report."""
from ghzbench import aggregate, summarize
from ghzbench.circuits import build_ghz_circuit
from ghzbench.config import ExperimentConfig
from ghzbench.runtime import make_executor

print("=" * 50)
print("ghzbench: Bell State Example")
print("=" * 50)

cfg = ExperimentConfig(qubit_count=2, backend_id="local", shot_count=1000,
                       readout_error=0.02, seed=42)

with make_executor(cfg) as executor:
    samples = executor.run(build_ghz_circuit(cfg.qubit_count), cfg)

report = summarize(aggregate(samples, cfg.qubit_count), cfg.qubit_count, cfg.shot_count)
print()
print(report.render())

print("\nExpected: ~50% |00⟩ and ~50% |11⟩ (entangled!)")
