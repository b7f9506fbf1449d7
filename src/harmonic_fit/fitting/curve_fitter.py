"""Least-squares fitting of a harmonic oscillator to weighted observations.

The fitter composes three pieces:

  - a start point, either supplied by the caller or produced by a
    ``ParameterGuesser`` (by default ``HarmonicParameterGuesser``),
  - the model f(t) = a·cos(ω·t + φ) with its analytic Jacobian,
  - ``scipy.optimize.least_squares`` (Levenberg-Marquardt) minimising the
    weighted residuals sqrt(w_i)·(f(t_i) − y_i).

Configuration is immutable; ``with_*`` methods return modified copies, so a
configured fitter can be shared between jobs.

Example
-------
>>> fitter = HarmonicCurveFitter.create().with_max_iterations(200)
>>> result = fitter.fit(observations)
>>> a, omega, phi = result.parameters
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from harmonic_fit.core.errors import FitConvergenceError
from harmonic_fit.core.model import ParameterGuesser, WeightedObservation
from harmonic_fit.fitting.guess import HarmonicParameterGuesser
from harmonic_fit.fitting.harmonic import (
    HarmonicOscillator,
    harmonic_gradient,
    harmonic_value,
    validate_parameters,
)

logger = logging.getLogger(__name__)

# max_nfev when no budget is set (largest C int).
UNBOUNDED_EVALUATIONS = 2**31 - 1


@dataclass
class FitDiagnostics:
    n_observations: int
    nfev: int
    cost: float
    rmse: float
    status: int
    message: str


@dataclass
class HarmonicFitResult:
    parameters: np.ndarray
    initial_guess: np.ndarray
    model: HarmonicOscillator
    diagnostics: FitDiagnostics


def _weights_sqrt(w: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise ValueError("Observation weights must be finite and non-negative.")
    return np.sqrt(w)


@dataclass(frozen=True)
class HarmonicCurveFitter:
    """Fits a·cos(ω·t + φ); parameters are returned as [a, omega, phi]."""

    initial_guess: Optional[tuple] = None
    max_iterations: Optional[int] = None
    guesser: ParameterGuesser = field(default_factory=HarmonicParameterGuesser)

    @classmethod
    def create(cls) -> "HarmonicCurveFitter":
        """Fitter with an automatic initial guess and an effectively unbounded
        evaluation budget (``UNBOUNDED_EVALUATIONS``)."""
        return cls()

    def with_start_point(self, start: Sequence[float]) -> "HarmonicCurveFitter":
        p = validate_parameters(start)
        return replace(self, initial_guess=tuple(float(v) for v in p))

    def with_max_iterations(self, max_iterations: int) -> "HarmonicCurveFitter":
        if int(max_iterations) < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}.")
        return replace(self, max_iterations=int(max_iterations))

    def with_guesser(self, guesser: ParameterGuesser) -> "HarmonicCurveFitter":
        return replace(self, guesser=guesser)

    @property
    def evaluation_budget(self) -> int:
        """``max_nfev`` handed to the optimizer."""
        if self.max_iterations is None:
            return UNBOUNDED_EVALUATIONS
        return self.max_iterations

    def start_point(self, observations: Sequence[WeightedObservation]) -> np.ndarray:
        if self.initial_guess is not None:
            return np.asarray(self.initial_guess, dtype=float)
        return validate_parameters(self.guesser.guess(observations))

    def fit(self, observations: Iterable[WeightedObservation]) -> HarmonicFitResult:
        obs = list(observations)
        x0 = self.start_point(obs)
        if len(obs) < x0.size:
            raise ValueError(
                f"Need at least {x0.size} observations to fit, got {len(obs)}."
            )

        t = np.array([o.x for o in obs], dtype=float)
        y = np.array([o.y for o in obs], dtype=float)
        sw = _weights_sqrt(np.array([o.weight for o in obs], dtype=float))

        def residuals(p):
            return sw * (harmonic_value(t, *p) - y)

        def jacobian(p):
            return sw[:, None] * harmonic_gradient(t, *p)

        logger.debug("Fitting %d observations from start point %s", len(obs), x0)
        budget = self.evaluation_budget
        res = least_squares(
            residuals,
            x0,
            jac=jacobian,
            method="lm",
            max_nfev=budget,
        )
        if res.status == 0:
            raise FitConvergenceError(budget, res.nfev)
        logger.debug("Optimizer finished: status=%d nfev=%d", res.status, res.nfev)

        params = np.asarray(res.x, dtype=float)
        model = HarmonicOscillator.from_parameters(params)
        r = y - model(t)
        diag = FitDiagnostics(
            n_observations=len(obs),
            nfev=int(res.nfev),
            cost=float(res.cost),
            rmse=float(np.sqrt(np.mean(r * r))),
            status=int(res.status),
            message=str(res.message),
        )
        return HarmonicFitResult(
            parameters=params,
            initial_guess=x0,
            model=model,
            diagnostics=diag,
        )


__all__ = [
    "FitDiagnostics",
    "HarmonicFitResult",
    "HarmonicCurveFitter",
    "UNBOUNDED_EVALUATIONS",
]
