"""
Outcome aggregation for shot-based sampling results.

Every sample is normalized to a canonical unsigned integer key where bit i
holds the measured value of qubit i. Bitstrings are read and written
most-significant bit first, so qubit 0 is the rightmost character:

    >>> from ghzbench.aggregate import aggregate
    >>> hist = aggregate(["00", "11", "11", 3, "0x0"], qubit_count=2)
    >>> dict(hist)
    {0: 2, 3: 3}
    >>> hist.to_counts()
    {'00': 2, '11': 3}

Memory is bounded by the number of distinct outcomes observed, never by
2^qubit_count. Malformed samples are logged, counted in `rejected`, and
left out of the histogram.
"""
from __future__ import annotations

import logging
import string
from collections import Counter
from collections.abc import Mapping
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .errors import SampleOutOfRange

logger = logging.getLogger(__name__)


def reference_keys(qubit_count: int) -> Tuple[int, int]:
    """Return the (all-zeros, all-ones) keys for the given width."""
    return 0, (1 << qubit_count) - 1


def to_bitstring(key: int, qubit_count: int) -> str:
    """Render a key as a fixed-width bitstring, qubit 0 rightmost."""
    return format(key, f'0{qubit_count}b')


def normalize_sample(sample, qubit_count: int) -> int:
    """
    Map one sample to its canonical integer key.

    Accepts ints (including numpy integer scalars), bitstrings of exactly
    `qubit_count` characters, and '0x'-prefixed hex strings. Strings are
    taken as-is: surrounding whitespace and '_' separators are rejected.

    Raises:
        SampleOutOfRange: if the sample is not a valid outcome for this width
    """
    if isinstance(sample, (bool, np.bool_)):
        raise SampleOutOfRange(sample, qubit_count, "boolean is not an outcome")

    if isinstance(sample, (int, np.integer)):
        value = int(sample)
    elif isinstance(sample, str):
        value = _parse_string_sample(sample, qubit_count)
    else:
        raise SampleOutOfRange(sample, qubit_count,
                               f"unsupported sample type {type(sample).__name__}")

    if value < 0 or value >> qubit_count:
        raise SampleOutOfRange(sample, qubit_count)
    return value


def _parse_string_sample(text: str, qubit_count: int) -> int:
    # no whitespace or '_' separators, which int() would otherwise accept
    if text[:2].lower() == '0x':
        digits = text[2:]
        if not digits or digits.strip(string.hexdigits):
            raise SampleOutOfRange(text, qubit_count, "not a hex value")
        return int(digits, 16)
    if len(text) != qubit_count:
        raise SampleOutOfRange(text, qubit_count,
                               f"expected {qubit_count} bits, got {len(text)}")
    if text.strip('01'):
        raise SampleOutOfRange(text, qubit_count, "not a bitstring")
    return int(text, 2)


class Classification(Enum):
    """Where an outcome falls relative to the ideal GHZ pattern."""
    ALL_ZEROS = 'all_zeros'
    ALL_ONES = 'all_ones'
    OTHER = 'other'


def classify(key: int, qubit_count: int) -> Classification:
    zeros, ones = reference_keys(qubit_count)
    if key == zeros:
        return Classification.ALL_ZEROS
    if key == ones:
        return Classification.ALL_ONES
    return Classification.OTHER


class OutcomeHistogram(Mapping):
    """
    Read-only mapping from outcome key to occurrence count.

    Attributes:
        qubit_count: Width of every key
        rejected: Number of samples dropped as SampleOutOfRange
    """

    def __init__(self, qubit_count: int, counts: Optional[Mapping[int, int]] = None,
                 rejected: int = 0):
        self.qubit_count = qubit_count
        self.rejected = rejected
        self._counts: Dict[int, int] = dict(counts or {})

    def __getitem__(self, key: int) -> int:
        return self._counts[key]

    def __iter__(self) -> Iterator[int]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    @property
    def total(self) -> int:
        """Number of valid samples counted."""
        return sum(self._counts.values())

    def count(self, key: int) -> int:
        return self._counts.get(key, 0)

    def bitstring(self, key: int) -> str:
        return to_bitstring(key, self.qubit_count)

    def most_common(self, n: Optional[int] = None) -> List[Tuple[int, int]]:
        """Entries by descending count, ties broken by ascending key."""
        ranked = sorted(self._counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked if n is None else ranked[:n]

    def to_counts(self) -> Dict[str, int]:
        """Bitstring-keyed counts in ascending key order."""
        return {self.bitstring(k): self._counts[k] for k in sorted(self._counts)}

    def merge(self, other: 'OutcomeHistogram') -> 'OutcomeHistogram':
        """Combine two histograms by summing counts for identical keys."""
        if other.qubit_count != self.qubit_count:
            raise ValueError(
                f"Cannot merge histograms of {self.qubit_count} and {other.qubit_count} qubits"
            )
        merged = Counter(self._counts)
        merged.update(other._counts)
        return OutcomeHistogram(self.qubit_count, merged, self.rejected + other.rejected)

    __add__ = merge

    def __eq__(self, other) -> bool:
        if isinstance(other, OutcomeHistogram):
            return (self.qubit_count == other.qubit_count
                    and self.rejected == other.rejected
                    and self._counts == other._counts)
        return super().__eq__(other)

    def __repr__(self) -> str:
        return (f"OutcomeHistogram(qubits={self.qubit_count}, distinct={len(self)}, "
                f"total={self.total}, rejected={self.rejected})")

    @classmethod
    def from_counts(cls, counts: Mapping, qubit_count: int) -> 'OutcomeHistogram':
        """
        Build from a vendor counts dict such as Qiskit's get_counts().

        Keys go through the same normalization as single samples; a bad key
        rejects all of its shots.
        """
        tally: Dict[int, int] = {}
        rejected = 0
        for raw, n in counts.items():
            try:
                key = normalize_sample(raw, qubit_count)
            except SampleOutOfRange as exc:
                logger.warning("%s (%d shots dropped)", exc, n)
                rejected += int(n)
                continue
            tally[key] = tally.get(key, 0) + int(n)
        return cls(qubit_count, tally, rejected)


def aggregate(samples: Iterable, qubit_count: int) -> OutcomeHistogram:
    """
    Count samples by outcome.

    Args:
        samples: Per-shot outcomes (ints, bitstrings or hex strings)
        qubit_count: Number of measured qubits

    Returns:
        OutcomeHistogram whose total equals the number of valid samples
    """
    tally: Dict[int, int] = {}
    rejected = 0
    for sample in samples:
        try:
            key = normalize_sample(sample, qubit_count)
        except SampleOutOfRange as exc:
            logger.warning("%s", exc)
            rejected += 1
            continue
        tally[key] = tally.get(key, 0) + 1

    logger.debug("Aggregated %d samples into %d outcomes (%d rejected)",
                 sum(tally.values()), len(tally), rejected)
    return OutcomeHistogram(qubit_count, tally, rejected)


def _aggregate_shard(args: Tuple[Sequence, int]) -> OutcomeHistogram:
    shard, qubit_count = args
    return aggregate(shard, qubit_count)


def aggregate_sharded(samples: Sequence, qubit_count: int, shards: int = 4,
                      executor=None) -> OutcomeHistogram:
    """
    Map-reduce form of aggregate().

    Splits the samples into `shards` contiguous pieces, builds a partial
    histogram per piece (through `executor.map` when a
    concurrent.futures executor is given) and merges them. The result
    equals aggregate(samples, qubit_count).
    """
    if shards < 1:
        raise ValueError(f"shards must be >= 1, got {shards}")
    samples = list(samples)
    bounds = np.linspace(0, len(samples), shards + 1).astype(int)
    pieces = [(samples[lo:hi], qubit_count) for lo, hi in zip(bounds[:-1], bounds[1:])]

    mapper = executor.map if executor is not None else map
    result = OutcomeHistogram(qubit_count)
    for partial in mapper(_aggregate_shard, pieces):
        result = result.merge(partial)
    return result
