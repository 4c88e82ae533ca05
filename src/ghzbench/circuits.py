"""
GHZ circuit construction.

|GHZ⟩ = (|00...0⟩ + |11...1⟩) / √2, prepared with a Hadamard on qubit 0
followed by a CNOT fan-out from qubit 0 to every other qubit. The
two-qubit case is the Bell state |Φ+⟩.
"""
from qiskit import ClassicalRegister, QuantumCircuit, QuantumRegister, qasm3

from .config import check_qubit_count

MEAS_REGISTER = 'meas'
QASM_PRINT_LIMIT = 10


def build_ghz_circuit(qubit_count: int) -> QuantumCircuit:
    """
    Build the measured GHZ circuit.

    Args:
        qubit_count: Number of qubits (2-127)

    Returns:
        QuantumCircuit whose classical register 'meas' holds qubit i in bit i
    """
    check_qubit_count(qubit_count)
    qr = QuantumRegister(qubit_count, 'q')
    cr = ClassicalRegister(qubit_count, MEAS_REGISTER)
    circ = QuantumCircuit(qr, cr, name=f'ghz_{qubit_count}')

    circ.h(0)
    for i in range(1, qubit_count):
        circ.cx(0, i)
    circ.measure(qr, cr)
    return circ


def describe_circuit(qubit_count: int) -> str:
    """One-line gate listing, e.g. 'H(0), CX(0,1), Measure'."""
    parts = ["H(0)"] + [f"CX(0,{i})" for i in range(1, qubit_count)] + ["Measure"]
    return ", ".join(parts)


def circuit_qasm(circuit: QuantumCircuit) -> str:
    """OpenQASM 3 source for the circuit."""
    return qasm3.dumps(circuit)
