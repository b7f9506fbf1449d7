"""
harmonic_fit_example.py
=======================

Purpose
-------
Minimal example showing how to use `harmonic_fit` to obtain the closed-form
initial guess for a*cos(omega*t + phi) and refine it with the curve fitter.

What this example does
----------------------
1) Samples a noisy harmonic signal at irregular abscissas.
2) Prints the initial guess [a, omega, phi].
3) Fits the model and prints the refined parameters.

Usage
-----
    python examples/harmonic_fit_example.py
"""

import numpy as np

from harmonic_fit.core.model import WeightedObservations
from harmonic_fit.fitting.curve_fitter import HarmonicCurveFitter
from harmonic_fit.fitting.guess import guess

# 1) Jittered sampling of 1.5*cos(2.3*t - 0.8) with a little noise.
rng = np.random.default_rng(42)
t = np.linspace(0.0, 12.0, 300) + rng.uniform(-0.01, 0.01, size=300)
y = 1.5 * np.cos(2.3 * t - 0.8) + rng.normal(0.0, 0.01, size=t.size)

points = WeightedObservations()
for ti, yi in zip(t, y):
    points.add(ti, yi)

# 2) Closed-form start point (no iterations).
a0, omega0, phi0 = guess(points)
print("Initial guess a, omega, phi:", f"{a0:.6f}", f"{omega0:.6f}", f"{phi0:.6f}")

# 3) Levenberg-Marquardt refinement from that start point.
result = HarmonicCurveFitter.create().with_max_iterations(1000).fit(points)
a, omega, phi = result.parameters
print("Fitted a, omega, phi:       ", f"{a:.6f}", f"{omega:.6f}", f"{phi:.6f}")
print("RMSE:", f"{result.diagnostics.rmse:.4e}")
