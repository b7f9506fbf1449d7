"""Closed-form initial guess for a harmonic model a·cos(ω·t + φ).

This module estimates amplitude ``a``, angular frequency ``omega`` and phase
``phi`` from noisy, weighted, irregularly spaced samples ``(t_i, y_i)``. The
result seeds a nonlinear least-squares refinement (see ``curve_fitter``); no
iterative search happens here. Both passes run in O(n).

Amplitude and angular frequency
-------------------------------
For f(t) = a·cos(ωt + φ) the two primitives

    If2(t)  = ∫ f²  dt = a² (t + S(t)) / 2
    If'2(t) = ∫ f'² dt = a² ω² (t − S(t)) / 2,   S(t) = sin(2(ωt + φ)) / (2ω)

combine, after eliminating S, into a relation that is *linear* in t and If2:

    If'2(t) = A·t + B·If2(t),   A = a²ω²,   B = −ω²

The same holds for definite integrals from the first sample t_1 to each t_i.
With x_i = t_i − t_1, y_i = ∫f² and z_i = ∫f'² (both integrated over the
piecewise-linear interpolant of the samples) the least-squares coefficients
reduce to

    c1 = Σyy·Σxz − Σxy·Σyz
    c2 = Σxy·Σxz − Σxx·Σyz
    c3 = Σxx·Σyy − Σxy²

    a = sqrt(c1 / c2),   ω = sqrt(c2 / c3)

Per step of width dx the interpolant contributes exactly

    dx·(y_{i-1}² + y_{i-1}·y_i + y_i²) / 3   to ∫f²
    dy² / dx                                 to ∫f'²

If either ratio is negative the sample does not look harmonic enough and a
coarse heuristic is used instead: one period over the observed range
(ω = 2π / (x_last − x_first)) and half the peak-to-peak value of all samples
but the first. A zero observed range makes that heuristic undefined and
raises ``ZeroRangeError``. If the ratios pass but c2 == 0 the system is
degenerate and ``DegenerateSystemError`` is raised.

Phase
-----
Once ω is known,

    fc = ω·f(t)·cos(ωt) − f'(t)·sin(ωt) =  a·ω·cos(φ)
    fs = ω·f(t)·sin(ωt) + f'(t)·cos(ωt) = −a·ω·sin(φ)

are constant in t. Summing them over the sample (f' from backward finite
differences) and taking φ = atan2(−Σfs, Σfc) gives the estimate; atan2 is
invariant to the common 1/(n−1) averaging factor so it is never applied.

Accuracy
--------
The integrals are exact for the interpolant only, so the guess converges to
the true parameters as the sampling gets denser: a and ω have second-order
discretisation error, φ first-order (backward differences). Sparse samples
give a rough but usable start point; the optimizer does the rest.

Zero-width steps
----------------
Samples sharing an abscissa make dy²/dx infinite or NaN. Such sums cannot be
trusted, so they route to the fallback heuristic (which raises
``ZeroRangeError`` when every sample shares the same abscissa). The phase pass
skips zero-width steps.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

import numpy as np

from harmonic_fit.core.errors import (
    MIN_OBSERVATIONS,
    DegenerateSystemError,
    InsufficientSamplesError,
    ZeroRangeError,
)
from harmonic_fit.core.model import WeightedObservation

logger = logging.getLogger(__name__)


# -------------------------
# Sorting
# -------------------------

def _check_sample_size(n: int) -> None:
    if n < MIN_OBSERVATIONS:
        raise InsufficientSamplesError(n, MIN_OBSERVATIONS)


def sort_observations(
    observations: Iterable[WeightedObservation],
) -> List[WeightedObservation]:
    """Return a new list sorted by ascending x.

    Ties on x are ordered by y, then weight, so that every permutation of the
    same sample yields the same sequence.
    """
    items = list(observations)
    _check_sample_size(len(items))
    return sorted(items, key=lambda o: (o.x, o.y, o.weight))


def _as_arrays(observations) -> Tuple[np.ndarray, np.ndarray]:
    x = np.fromiter((o.x for o in observations), dtype=np.float64)
    y = np.fromiter((o.y for o in observations), dtype=np.float64)
    return x, y


# -------------------------
# Amplitude and angular frequency
# -------------------------

def _integral_sums(x: np.ndarray, y: np.ndarray) -> Tuple[float, ...]:
    """Running integrals of f² and f'² and the five regression sums."""
    dx = np.diff(x)
    dy = np.diff(y)
    y0 = y[:-1]
    y1 = y[1:]
    f2 = np.cumsum(dx * (y0 * y0 + y0 * y1 + y1 * y1) / 3.0)
    fprime2 = np.cumsum(dy * dy / dx)
    xr = x[1:] - x[0]

    sx2 = np.sum(xr * xr)
    sy2 = np.sum(f2 * f2)
    sxy = np.sum(xr * f2)
    sxz = np.sum(xr * fprime2)
    syz = np.sum(f2 * fprime2)
    return sx2, sy2, sxy, sxz, syz


def _fallback_a_omega(x: np.ndarray, y: np.ndarray) -> Tuple[float, float]:
    # Assumes the samples are sorted.
    x_range = x[-1] - x[0]
    if x_range == 0:
        raise ZeroRangeError(
            f"Abscissa range is zero (all {x.size} samples at x={x[0]!r})."
        )
    omega = 2.0 * np.pi / x_range
    # The first sample is left out, as in the integration pass.
    a = 0.5 * (np.max(y[1:]) - np.min(y[1:]))
    return float(a), float(omega)


def guess_a_omega(observations: List[WeightedObservation]) -> Tuple[float, float]:
    """Estimate (a, omega) from observations sorted by x.

    Raises
    ------
    ZeroRangeError
        If the fallback heuristic is needed and the abscissa range is zero.
    DegenerateSystemError
        If the least-squares denominator c2 is exactly zero.
    """
    _check_sample_size(len(observations))
    x, y = _as_arrays(observations)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        sx2, sy2, sxy, sxz, syz = _integral_sums(x, y)

        c1 = sy2 * sxz - sxy * syz
        c2 = sxy * sxz - sx2 * syz
        c3 = sx2 * sy2 - sxy * sxy

        finite = bool(np.isfinite(c1) and np.isfinite(c2) and np.isfinite(c3))
        if not finite or (c1 / c2 < 0) or (c2 / c3 < 0):
            a, omega = _fallback_a_omega(x, y)
            logger.warning(
                "Harmonic guess fell back to the one-period heuristic "
                "(c1=%g, c2=%g, c3=%g): a=%g, omega=%g",
                c1, c2, c3, a, omega,
            )
            return a, omega

        if c2 == 0:
            # Happens e.g. for constant or linear samples.
            raise DegenerateSystemError()

        a = np.sqrt(c1 / c2)
        omega = np.sqrt(c2 / c3)
    return float(a), float(omega)


# -------------------------
# Phase
# -------------------------

def guess_phi(observations: List[WeightedObservation], omega: float) -> float:
    """Estimate the phase in (-pi, pi] from observations sorted by x."""
    x, y = _as_arrays(observations)
    dx = np.diff(x)
    dy = np.diff(y)
    step = dx != 0
    x1 = x[1:][step]
    y1 = y[1:][step]
    yprime = dy[step] / dx[step]

    omega = float(omega)
    with np.errstate(invalid="ignore", over="ignore"):
        wx = omega * x1
        cosine = np.cos(wx)
        sine = np.sin(wx)
        fc_sum = np.sum(omega * y1 * cosine - yprime * sine)
        fs_sum = np.sum(omega * y1 * sine + yprime * cosine)

    phi = float(np.arctan2(-fs_sum, fc_sum))
    if phi == -np.pi:
        phi = float(np.pi)
    return phi


# -------------------------
# Public API
# -------------------------

def guess(observations: Iterable[WeightedObservation]) -> np.ndarray:
    """Return the initial guess ``[a, omega, phi]`` for ``a·cos(ω·t + φ)``.

    The order of the returned array is fixed; the curve fitter passes it to
    the optimizer as is.
    """
    sorted_obs = sort_observations(observations)
    a, omega = guess_a_omega(sorted_obs)
    phi = guess_phi(sorted_obs, omega)
    return np.array([a, omega, phi], dtype=np.float64)


class HarmonicParameterGuesser:
    """Default ``ParameterGuesser`` used by ``HarmonicCurveFitter``.

    Stateless; one instance can serve any number of fits, concurrently too.
    """

    def guess(self, observations: Iterable[WeightedObservation]) -> np.ndarray:
        return guess(observations)

    def __repr__(self) -> str:
        return "HarmonicParameterGuesser()"


__all__ = [
    "sort_observations",
    "guess_a_omega",
    "guess_phi",
    "guess",
    "HarmonicParameterGuesser",
]
