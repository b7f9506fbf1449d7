from __future__ import annotations

"""
model.py
========
Minimal data models shared by the guessing, fitting and I/O layers.

This module is intentionally small and stable. The estimators, the curve
fitter and the readers all rely on the same observation record without
importing each other.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Protocol

import numpy as np


# One weighted sample of the signal.
@dataclass(frozen=True)
class WeightedObservation:
    # Abscissa (usually time).
    x: float
    # Observed value at x.
    y: float
    # Weight used by the optimizer; carried through the guess untouched.
    weight: float = 1.0


class WeightedObservations:
    """Mutable collector of observations, kept in insertion order."""

    def __init__(self, observations: Optional[Iterable[WeightedObservation]] = None):
        self._items: List[WeightedObservation] = list(observations or [])

    def add(self, x: float, y: float, weight: float = 1.0) -> None:
        self._items.append(WeightedObservation(float(x), float(y), float(weight)))

    def add_observation(self, observation: WeightedObservation) -> None:
        self._items.append(observation)

    def to_list(self) -> List[WeightedObservation]:
        # Copy, so callers cannot mutate the collector through it.
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WeightedObservation]:
        return iter(self._items)


def observations_from_arrays(x, y, weight=None) -> List[WeightedObservation]:
    """Build observations from array-likes; weights default to 1.0."""
    xs = np.asarray(x, dtype=float).ravel()
    ys = np.asarray(y, dtype=float).ravel()
    if weight is None:
        ws = np.ones_like(xs)
    else:
        ws = np.asarray(weight, dtype=float).ravel()
    if not (xs.size == ys.size == ws.size):
        raise ValueError(
            f"x, y and weight must have the same length, got "
            f"{xs.size}, {ys.size} and {ws.size}."
        )
    return [
        WeightedObservation(float(a), float(b), float(w))
        for a, b, w in zip(xs, ys, ws)
    ]


class ParameterGuesser(Protocol):
    """Provides the start point [a, omega, phi] for a harmonic fit."""

    def guess(self, observations: Iterable[WeightedObservation]) -> np.ndarray: ...


__all__ = [
    "WeightedObservation",
    "WeightedObservations",
    "observations_from_arrays",
    "ParameterGuesser",
]
