"""
io.tsv
======

Reader for weighted observations stored as delimited text.

File format
-----------
- One header line followed by data rows. Tab is the expected separator;
  commas, semicolons and whitespace are auto-detected as a fallback.
- Lines starting with '#' are comments.
- Required columns: abscissa and value (default names ``x`` and ``y``).
- Optional column: weight (default name ``weight``). If absent every
  observation gets weight 1.0.
- Rows whose abscissa or value is missing or non-numeric are dropped, with
  a warning naming how many. A missing weight in a present weight column
  also defaults to 1.0.

Example
-------
>>> from harmonic_fit.io.tsv import load_observations_tsv
>>> obs = load_observations_tsv("samples.tsv")
>>> len(obs)
120
"""

from __future__ import annotations

import logging
from typing import List

import pandas as pd

from harmonic_fit.core.model import WeightedObservation, observations_from_arrays

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ("x", "y", "weight")


def read_observations_tsv(
    path: str,
    *,
    x_col: str = "x",
    y_col: str = "y",
    weight_col: str = "weight",
) -> pd.DataFrame:
    """
    Read observations into a DataFrame with columns ``x``, ``y``, ``weight``.

    Raises
    ------
    ValueError
        If the abscissa or value column is missing.
    """
    # Try strict TSV first. If it fails, fall back to auto-detect.
    try:
        df = pd.read_csv(path, sep="\t", comment="#")
        if len(df.columns) < 2:
            raise ValueError("single column")
    except Exception:
        df = pd.read_csv(path, sep=None, engine="python", comment="#")

    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in (x_col, y_col) if c not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required columns {missing} in '{path}'. "
            f"Found columns: {list(df.columns)}"
        )

    out = pd.DataFrame(
        {
            "x": pd.to_numeric(df[x_col], errors="coerce"),
            "y": pd.to_numeric(df[y_col], errors="coerce"),
        }
    )
    if weight_col in df.columns:
        out["weight"] = pd.to_numeric(df[weight_col], errors="coerce").fillna(1.0)
    else:
        out["weight"] = 1.0

    n_rows = len(out)
    out = out.dropna(subset=["x", "y"]).reset_index(drop=True)
    dropped = n_rows - len(out)
    if dropped:
        logger.warning(
            "Dropped %d of %d rows with missing or non-numeric %r/%r in %s",
            dropped, n_rows, x_col, y_col, path,
        )
    return out[list(OUTPUT_COLUMNS)].astype(float)


def load_observations_tsv(path: str, **kwargs) -> List[WeightedObservation]:
    """Read a file with ``read_observations_tsv`` and return observations."""
    df = read_observations_tsv(path, **kwargs)
    return observations_from_arrays(
        df["x"].to_numpy(float),
        df["y"].to_numpy(float),
        df["weight"].to_numpy(float),
    )


__all__ = ["OUTPUT_COLUMNS", "read_observations_tsv", "load_observations_tsv"]
