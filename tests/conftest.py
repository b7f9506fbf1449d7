from __future__ import annotations

import numpy as np
import pytest

from harmonic_fit.core.model import WeightedObservation, observations_from_arrays

# ---------- Shared fixtures ----------


@pytest.fixture
def harmonic_samples():
    """Factory: exact samples of a*cos(omega*t + phi) on a regular grid."""

    def _make(a=2.0, omega=1.0, phi=0.3, t_max=3.0, n=7, weight=1.0):
        t = np.linspace(0.0, t_max, n)
        y = a * np.cos(omega * t + phi)
        return observations_from_arrays(t, y, np.full(n, weight))

    return _make


@pytest.fixture
def reference_samples():
    """Seven samples of 2*cos(t + 0.3) at t = 0, 0.5, ..., 3."""
    t = [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0]
    return [WeightedObservation(ti, float(2.0 * np.cos(ti + 0.3)), 1.0) for ti in t]


@pytest.fixture
def write_samples_tsv(tmp_path):
    """Write observations to a TSV file with a comment line; return its path."""

    def _write(name, observations, with_weight=True):
        lines = ["# synthetic harmonic samples"]
        lines.append("x\ty\tweight" if with_weight else "x\ty")
        for o in observations:
            if with_weight:
                lines.append(f"{float(o.x)!r}\t{float(o.y)!r}\t{float(o.weight)!r}")
            else:
                lines.append(f"{float(o.x)!r}\t{float(o.y)!r}")
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _write

