"""Harmonic oscillator model f(t) = a·cos(ω·t + φ) and its parameter gradient.

Parameters are always handled as a flat vector ``[a, omega, phi]``; this is
the order produced by the initial guess and consumed by the optimizer.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def validate_parameters(params: Sequence[float]) -> np.ndarray:
    p = np.asarray(params, dtype=float).ravel()
    if p.size != 3:
        raise ValueError(
            f"Harmonic parameters must be [a, omega, phi], got {p.size} values."
        )
    return p


def harmonic_value(t, a: float, omega: float, phi: float) -> np.ndarray:
    t = np.asarray(t, dtype=float)
    return a * np.cos(omega * t + phi)


def harmonic_gradient(t, a: float, omega: float, phi: float) -> np.ndarray:
    """Jacobian of f w.r.t. (a, omega, phi), shape (n, 3)."""
    t = np.atleast_1d(np.asarray(t, dtype=float))
    arg = omega * t + phi
    c = np.cos(arg)
    s = np.sin(arg)
    return np.column_stack((c, -a * t * s, -a * s))


class HarmonicOscillator:
    """Callable harmonic model with fixed parameters."""

    def __init__(self, amplitude: float, omega: float, phase: float) -> None:
        self.amplitude = float(amplitude)
        self.omega = float(omega)
        self.phase = float(phase)

    @classmethod
    def from_parameters(cls, params: Sequence[float]) -> "HarmonicOscillator":
        a, omega, phi = validate_parameters(params)
        return cls(a, omega, phi)

    @property
    def parameters(self) -> np.ndarray:
        return np.array([self.amplitude, self.omega, self.phase], dtype=float)

    def __call__(self, t) -> np.ndarray:
        return harmonic_value(t, self.amplitude, self.omega, self.phase)

    def derivative(self, t) -> np.ndarray:
        t = np.asarray(t, dtype=float)
        return -self.amplitude * self.omega * np.sin(self.omega * t + self.phase)

    def describe(self) -> dict:
        return {
            "type": "harmonic",
            "amplitude": self.amplitude,
            "omega": self.omega,
            "phase": self.phase,
        }

    def __repr__(self) -> str:
        return (
            f"HarmonicOscillator(amplitude={self.amplitude!r}, "
            f"omega={self.omega!r}, phase={self.phase!r})"
        )


__all__ = [
    "validate_parameters",
    "harmonic_value",
    "harmonic_gradient",
    "HarmonicOscillator",
]
