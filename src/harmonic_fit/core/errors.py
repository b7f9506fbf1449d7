"""
errors.py
=========
Exceptions raised while guessing or fitting a harmonic model.

The guess errors share a common base so callers (the curve fitter, the CLI)
can decide in one place whether to abort a fit or fall back to a start point
they supply themselves. None of them is retried internally: the computation
is deterministic and the same input reproduces the same failure.
"""

from __future__ import annotations

MIN_OBSERVATIONS = 4


class HarmonicGuessError(ValueError):
    """Base class for failures of the initial-guess procedure."""


class InsufficientSamplesError(HarmonicGuessError):
    """Raised when fewer observations than required are supplied."""

    def __init__(self, actual: int, required: int = MIN_OBSERVATIONS) -> None:
        self.actual = int(actual)
        self.required = int(required)
        super().__init__(
            f"Insufficient observed points in sample: got {self.actual}, "
            f"need at least {self.required}."
        )


class ZeroRangeError(HarmonicGuessError):
    """Raised when all abscissas coincide (max(x) - min(x) == 0)."""

    def __init__(self, message: str = "Abscissa range is zero.") -> None:
        super().__init__(message)


class DegenerateSystemError(HarmonicGuessError):
    """Raised when the amplitude/frequency system has a zero denominator."""

    def __init__(
        self,
        message: str = (
            "Zero denominator while solving for amplitude and angular "
            "frequency; the sample is ill-conditioned."
        ),
    ) -> None:
        super().__init__(message)


class FitConvergenceError(RuntimeError):
    """Raised when the optimizer exhausts its evaluation budget."""

    def __init__(self, max_iterations: int, nfev: int) -> None:
        self.max_iterations = int(max_iterations)
        self.nfev = int(nfev)
        super().__init__(
            f"Optimizer stopped after {self.nfev} evaluations "
            f"(max_iterations={self.max_iterations}) without converging."
        )


__all__ = [
    "MIN_OBSERVATIONS",
    "HarmonicGuessError",
    "InsufficientSamplesError",
    "ZeroRangeError",
    "DegenerateSystemError",
    "FitConvergenceError",
]
