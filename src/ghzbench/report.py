"""
Summary statistics and text rendering for a GHZ sampling run.

Percentages are always taken against the configured shot count, not the
number of samples that came back, so lost samples show up as a shortfall
instead of being renormalized away.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .aggregate import OutcomeHistogram, reference_keys, to_bitstring
from .errors import InvalidShotCount, SampleOutOfRange

VISIBILITY_THRESHOLD = 1.0  # percent


@dataclass(frozen=True)
class OutcomeLine:
    """One reported count with its share of the configured shots."""
    label: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'count': self.count, 'percentage': self.percentage}


@dataclass(frozen=True)
class Report:
    """Result of summarize(); rendered with render() or to_dict()."""
    qubit_count: int
    shot_count: int
    outcomes: Tuple[OutcomeLine, ...]
    all_zeros: OutcomeLine
    all_ones: OutcomeLine
    other: OutcomeLine
    observed: int
    rejected: int = 0

    @property
    def shortfall(self) -> int:
        """Shots requested but not counted."""
        return self.shot_count - self.observed

    @property
    def ghz_fraction(self) -> float:
        """Share of shots landing on either ideal outcome, in [0, 1]."""
        return (self.all_zeros.count + self.all_ones.count) / self.shot_count

    def render(self) -> str:
        lines = ["Measurement Results:", "-------------------"]
        for line in self.outcomes:
            lines.append(f"  |{line.label}⟩: {line.count} ({line.percentage:.1f}%)")
        lines.append("")
        lines.append("Summary:")
        for name, line in (("All 0s", self.all_zeros),
                           ("All 1s", self.all_ones),
                           ("Other (noise)", self.other)):
            lines.append(f"  {name}: {line.count} ({line.percentage:.1f}%)")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'qubit_count': self.qubit_count,
            'shot_count': self.shot_count,
            'observed': self.observed,
            'rejected': self.rejected,
            'shortfall': self.shortfall,
            'ghz_fraction': self.ghz_fraction,
            'outcomes': [line.to_dict() for line in self.outcomes],
            'summary': {
                'all_zeros': self.all_zeros.to_dict(),
                'all_ones': self.all_ones.to_dict(),
                'other': self.other.to_dict(),
            },
        }

    def __str__(self) -> str:
        return self.render()


def percentage(count: int, shot_count: int) -> float:
    return 100.0 * count / shot_count


def summarize(histogram: OutcomeHistogram, qubit_count: int, shot_count: int,
              threshold: float = VISIBILITY_THRESHOLD) -> Report:
    """
    Classify a histogram against the GHZ reference outcomes.

    Args:
        histogram: Output of aggregate()
        qubit_count: Width used to build the reference keys
        shot_count: Configured number of shots (the percentage denominator)
        threshold: Per-outcome lines are shown only above this share, in percent

    Returns:
        Report with the visible outcomes in ascending key order and the
        three summary buckets, which are always present.

    Raises:
        InvalidShotCount: if shot_count is not positive
        ValueError: if the histogram was built for a different width
        SampleOutOfRange: if a plain mapping holds a key outside the width
    """
    if isinstance(shot_count, bool) or not isinstance(shot_count, int) or shot_count <= 0:
        raise InvalidShotCount(f"shots must be a positive integer, got {shot_count!r}")
    if isinstance(histogram, OutcomeHistogram):
        if histogram.qubit_count != qubit_count:
            raise ValueError(
                f"Cannot summarize a {histogram.qubit_count}-qubit histogram "
                f"as {qubit_count} qubits"
            )
    else:
        for key in histogram:
            if key < 0 or key >> qubit_count:
                raise SampleOutOfRange(key, qubit_count)

    zeros_key, ones_key = reference_keys(qubit_count)
    zeros = histogram.get(zeros_key, 0)
    ones = histogram.get(ones_key, 0)
    observed = sum(histogram.values())
    other = observed - zeros - ones

    outcomes = []
    for key in sorted(histogram):
        count = histogram[key]
        pct = percentage(count, shot_count)
        if pct > threshold:
            outcomes.append(OutcomeLine(to_bitstring(key, qubit_count), count, pct))

    return Report(
        qubit_count=qubit_count,
        shot_count=shot_count,
        outcomes=tuple(outcomes),
        all_zeros=OutcomeLine(to_bitstring(zeros_key, qubit_count), zeros,
                              percentage(zeros, shot_count)),
        all_ones=OutcomeLine(to_bitstring(ones_key, qubit_count), ones,
                             percentage(ones, shot_count)),
        other=OutcomeLine('other', other, percentage(other, shot_count)),
        observed=observed,
        rejected=getattr(histogram, 'rejected', 0),
    )
