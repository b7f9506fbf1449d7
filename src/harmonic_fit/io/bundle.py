"""Persistence and reporting for fitted harmonic models.

A fit is stored as a single joblib file holding a plain dict:

- ``format``: 1
- ``parameters``: [a, omega, phi] of the fitted model
- ``initial_guess``: start point handed to the optimizer
- ``meta``: ``FitMetadata`` (timestamp, source hash/path, library version,
  evaluation budget, notes)
- ``diag``: ``FitDiagnostics`` from the optimizer run

Only plain Python types are written, so bundles stay loadable across numpy
versions.
"""

from __future__ import annotations

import datetime
import hashlib
from dataclasses import asdict, dataclass
from typing import Optional

import joblib
import numpy as np

from harmonic_fit.fitting.curve_fitter import FitDiagnostics, HarmonicFitResult
from harmonic_fit.fitting.harmonic import HarmonicOscillator, validate_parameters

BUNDLE_FORMAT = 1
LIBRARY_VERSION = "harmonic_fit 0.1.0"


@dataclass
class FitMetadata:
    timestamp_utc: str
    data_hash: Optional[str]
    source_path: Optional[str]
    library_version: str
    max_iterations: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class FitBundle:
    parameters: np.ndarray
    initial_guess: np.ndarray
    meta: FitMetadata
    diag: FitDiagnostics

    @property
    def model(self) -> HarmonicOscillator:
        return HarmonicOscillator.from_parameters(self.parameters)


def _sha256_of_file_strip_comments(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for raw in f:
            line = raw.decode("utf-8", "ignore")
            if line.lstrip().startswith("#"):
                continue
            h.update(line.encode("utf-8"))
    return h.hexdigest()


def make_fit_bundle(
    result: HarmonicFitResult,
    *,
    source_path: Optional[str] = None,
    notes: Optional[str] = None,
    max_iterations: Optional[int] = None,
) -> FitBundle:
    meta = FitMetadata(
        timestamp_utc=datetime.datetime.now(datetime.timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        ),
        data_hash=_sha256_of_file_strip_comments(source_path) if source_path else None,
        source_path=str(source_path) if source_path else None,
        library_version=LIBRARY_VERSION,
        max_iterations=max_iterations,
        notes=notes,
    )
    return FitBundle(
        parameters=np.asarray(result.parameters, dtype=float),
        initial_guess=np.asarray(result.initial_guess, dtype=float),
        meta=meta,
        diag=result.diagnostics,
    )


def predict(bundle: FitBundle, t) -> np.ndarray:
    """Evaluate the fitted model at ``t`` (scalar or array)."""
    return np.atleast_1d(bundle.model(t))


def fit_summary(bundle: FitBundle) -> str:
    a, omega, phi = bundle.parameters
    a0, omega0, phi0 = bundle.initial_guess
    md = bundle.meta
    dg = bundle.diag
    lines = []
    lines.append("Harmonic oscillator fit: f(t) = a * cos(omega * t + phi)")
    lines.append(f"  a:                   {a:.9g}")
    lines.append(f"  omega (rad/unit t):  {omega:.9g}")
    lines.append(f"  phi (rad):           {phi:.9g}")
    if omega != 0:
        lines.append(f"  period (unit t):     {2.0 * np.pi / abs(omega):.9g}")
    lines.append("Initial guess:")
    lines.append(f"  a / omega / phi:     {a0:.6g} / {omega0:.6g} / {phi0:.6g}")
    lines.append("Diagnostics:")
    lines.append(f"  observations:        {dg.n_observations}")
    lines.append(f"  evaluations:         {dg.nfev}")
    lines.append(f"  cost:                {dg.cost:.6e}")
    lines.append(f"  RMSE:                {dg.rmse:.6e}")
    lines.append(f"  optimizer status:    {dg.status} ({dg.message})")
    lines.append(f"  fitted at (UTC):     {md.timestamp_utc}")
    if md.source_path:
        lines.append(f"  source:              {md.source_path}")
    if md.data_hash:
        lines.append(f"  data hash:           {md.data_hash[:16]}...")
    if md.notes:
        lines.append(f"  notes:               {md.notes}")
    lines.append("Python:")
    lines.append("  import math")
    lines.append("  def f(t):")
    lines.append(f"      return {a!r} * math.cos({omega!r} * t + {phi!r})")
    return "\n".join(lines)


# -------------------------
# Persistence
# -------------------------

def save_fit_bundle(bundle: FitBundle, path: str) -> None:
    to_save = {
        "format": BUNDLE_FORMAT,
        "parameters": np.asarray(bundle.parameters, dtype=float).tolist(),
        "initial_guess": np.asarray(bundle.initial_guess, dtype=float).tolist(),
        "meta": asdict(bundle.meta),
        "diag": asdict(bundle.diag),
    }
    joblib.dump(to_save, path)


def load_fit_bundle(path: str) -> FitBundle:
    d = joblib.load(path)
    if not isinstance(d, dict):
        raise ValueError(f"Not a fit bundle: {path}")
    fmt = int(d.get("format", -1))
    if fmt != BUNDLE_FORMAT:
        raise ValueError(f"Unsupported fit bundle format {fmt} in {path}")
    return FitBundle(
        parameters=validate_parameters(d["parameters"]),
        initial_guess=validate_parameters(d["initial_guess"]),
        meta=FitMetadata(**d["meta"]),
        diag=FitDiagnostics(**d["diag"]),
    )


__all__ = [
    "BUNDLE_FORMAT",
    "LIBRARY_VERSION",
    "FitMetadata",
    "FitBundle",
    "make_fit_bundle",
    "predict",
    "fit_summary",
    "save_fit_bundle",
    "load_fit_bundle",
]
