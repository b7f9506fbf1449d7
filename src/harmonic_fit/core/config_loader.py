from __future__ import annotations

"""
config_loader.py
================
TOML configuration for the fitting CLI.

Effective configuration = built-in defaults <- config file <- --set overrides.
Tables and keys:

    [input]   x_column, y_column, weight_column
    [fit]     max_iterations, start_point = [a, omega, phi] (optional)
    [output]  dir, plot
"""

import copy
import tomllib
from typing import Any, Dict, Iterable, Optional

import tomli_w

DEFAULTS: Dict[str, Any] = {
    "input": {"x_column": "x", "y_column": "y", "weight_column": "weight"},
    "fit": {"max_iterations": 1000},
    "output": {"dir": "fits", "plot": True},
}


def load_toml(path: str) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge_dicts(out[k], v)
        else:
            out[k] = v
    return out


def parse_scalar(s: str):
    sl = s.lower()
    if sl in ("true", "false"):
        return sl == "true"
    try:
        if "." in s or "e" in sl:
            return float(s)
        return int(s)
    except ValueError:
        return s


def apply_sets(cfg: Dict[str, Any], sets: Iterable[str]) -> Dict[str, Any]:
    for item in sets:
        if "=" not in item:
            raise ValueError(f"--set requires key=value, got: {item}")
        key, val = item.split("=", 1)
        path = key.strip().split(".")
        cursor = cfg
        for p in path[:-1]:
            if p not in cursor or not isinstance(cursor[p], dict):
                cursor[p] = {}
            cursor = cursor[p]
        val = val.strip()
        if val.startswith("[") and val.endswith("]"):
            inner = val[1:-1].strip()
            items = inner.split(",") if inner else []
            cursor[path[-1]] = [parse_scalar(x.strip()) for x in items]
        else:
            cursor[path[-1]] = parse_scalar(val)
    return cfg


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    fit = cfg.get("fit", {})
    max_iter = fit.get("max_iterations")
    if max_iter is not None:
        if isinstance(max_iter, bool) or not isinstance(max_iter, int) or max_iter < 1:
            raise ValueError(f"fit.max_iterations must be an integer >= 1, got {max_iter!r}")
    start = fit.get("start_point")
    if start is not None:
        ok = isinstance(start, list) and len(start) == 3 and all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in start
        )
        if not ok:
            raise ValueError(
                f"fit.start_point must be a list of 3 numbers [a, omega, phi], got {start!r}"
            )
    return cfg


def load_fit_config(
    path: Optional[str] = None,
    set_overrides: Iterable[str] = (),
) -> Dict[str, Any]:
    """Compose defaults, the optional TOML file and --set overrides."""
    cfg = copy.deepcopy(DEFAULTS)
    if path:
        cfg = merge_dicts(cfg, load_toml(path))
    cfg = apply_sets(cfg, set_overrides)
    return validate_config(cfg)


def dump_effective_config(cfg: Dict[str, Any]) -> str:
    return tomli_w.dumps(cfg)


__all__ = [
    "DEFAULTS",
    "load_toml",
    "merge_dicts",
    "parse_scalar",
    "apply_sets",
    "validate_config",
    "load_fit_config",
    "dump_effective_config",
]
