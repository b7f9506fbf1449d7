#!/usr/bin/env python3
"""Guess, fit, evaluate and summarise harmonic models f(t) = a·cos(ω·t + φ).

-------------------------------------------------------------------------------
Available subcommands
-------------------------------------------------------------------------------
guess     Print the closed-form initial guess [a, omega, phi] for a TSV file.
fit       Fit the model (initial guess + Levenberg-Marquardt) and save a
          .joblib bundle, a text summary and a PNG plot.
predict   Evaluate a saved fit at one or more abscissas.
summary   Print the summary of a saved fit.

-------------------------------------------------------------------------------
Command-line usage examples
-------------------------------------------------------------------------------
1) Initial guess only:
   python scripts/harmonic_fit_cli.py guess samples.tsv

2) Fit with defaults (outputs under fits/):
   python scripts/harmonic_fit_cli.py fit samples.tsv
   # Outputs: fits/samples.joblib, fits/samples_summary.txt, fits/samples.png

3) Fit with a config file, overriding the evaluation budget:
   python scripts/harmonic_fit_cli.py --config fit.toml \
       --set fit.max_iterations=200 fit samples.tsv

4) Fit from a caller-supplied start point (skips the guess):
   python scripts/harmonic_fit_cli.py fit samples.tsv --start-point 2,1,0.3

5) Evaluate a saved fit:
   python scripts/harmonic_fit_cli.py predict fits/samples.joblib --t 0 0.5 1

6) Show the merged configuration and exit:
   python scripts/harmonic_fit_cli.py --config fit.toml --dump-effective-config

-------------------------------------------------------------------------------
Input / output conventions
-------------------------------------------------------------------------------
- Input files: delimited text with columns x, y and optional weight (names
  configurable under [input]); '#' starts a comment.
- Every run appends to <log-dir>/run_<UTC stamp>.log.
- Errors are reported as "error: ..." on stderr with exit status 2.
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from harmonic_fit.core.config_loader import (  # noqa: E402
    dump_effective_config,
    load_fit_config,
)
from harmonic_fit.core.errors import FitConvergenceError, HarmonicGuessError  # noqa: E402
from harmonic_fit.fitting.curve_fitter import HarmonicCurveFitter  # noqa: E402
from harmonic_fit.fitting.guess import guess  # noqa: E402
from harmonic_fit.io.bundle import (  # noqa: E402
    fit_summary,
    load_fit_bundle,
    make_fit_bundle,
    predict,
    save_fit_bundle,
)
from harmonic_fit.io.tsv import load_observations_tsv  # noqa: E402

EXIT_ERROR = 2


# --- Run log --------------------------------------------------------------

def _init_logger(log_dir: str) -> Tuple[str, Callable[[str], None]]:
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%fZ")
    path = os.path.join(log_dir, f"run_{stamp}.log")

    def _log(msg: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(msg.rstrip() + "\n")

    return path, _log


def _log_header(log, args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    log(f"[{now}] Run started: {args.command}")
    if args.config:
        log(f"Config file: {args.config}")
    log("")
    log("----- Effective configuration -----")
    log(dump_effective_config(cfg).rstrip())
    log("-----------------------------------")
    log("")


# --- Helpers --------------------------------------------------------------

def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def _parse_csv_floats(text: str):
    text = (text or "").strip()
    if not text:
        return None
    out = []
    for tok in text.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            raise ValueError(f"Invalid float in list: {tok!r}")
    return out if out else None


def _read_input(path: str, cfg: Dict[str, Any]):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")
    inp = cfg.get("input", {})
    return load_observations_tsv(
        path,
        x_col=inp.get("x_column", "x"),
        y_col=inp.get("y_column", "y"),
        weight_col=inp.get("weight_column", "weight"),
    )


def _build_fitter(cfg: Dict[str, Any]) -> HarmonicCurveFitter:
    fit_cfg = cfg.get("fit", {})
    fitter = HarmonicCurveFitter.create()
    if fit_cfg.get("max_iterations") is not None:
        fitter = fitter.with_max_iterations(fit_cfg["max_iterations"])
    if fit_cfg.get("start_point") is not None:
        fitter = fitter.with_start_point(fit_cfg["start_point"])
    return fitter


def _plot_fit(path: str, obs, bundle, title: str) -> None:
    t = np.array([o.x for o in obs], dtype=float)
    y = np.array([o.y for o in obs], dtype=float)
    grid = np.linspace(t.min(), t.max(), max(500, 10 * t.size))
    a, omega, phi = bundle.parameters

    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(t, y, ".", ms=4, color="0.3", label="data")
    ax.plot(grid, predict(bundle, grid), "-", lw=1.2, label="fit")
    ax.set_xlabel("t")
    ax.set_ylabel("f(t)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best", fontsize=8)
    fig.suptitle(title, fontsize=9)
    ax.set_title(f"a={a:.6g}, ω={omega:.6g}, φ={phi:.6g}", fontsize=8)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)


# -----------
# Subcommands
# -----------

def cmd_guess(args: argparse.Namespace, cfg: Dict[str, Any], log) -> int:
    obs = _read_input(args.tsv, cfg)
    log(f"Read {len(obs)} observations from {args.tsv}")
    a, omega, phi = guess(obs)
    log(f"Initial guess: a={a!r} omega={omega!r} phi={phi!r}")
    print(f"a={a:.9g} omega={omega:.9g} phi={phi:.9g}")
    return 0


def cmd_fit(args: argparse.Namespace, cfg: Dict[str, Any], log) -> int:
    obs = _read_input(args.tsv, cfg)
    log(f"Read {len(obs)} observations from {args.tsv}")

    fitter = _build_fitter(cfg)
    result = fitter.fit(obs)
    log(f"Start point: {result.initial_guess.tolist()}")
    log(f"Fitted parameters: {result.parameters.tolist()}")
    log(f"Evaluations: {result.diagnostics.nfev}, RMSE: {result.diagnostics.rmse:.6e}")

    bundle = make_fit_bundle(
        result,
        source_path=args.tsv,
        notes=args.notes,
        max_iterations=fitter.max_iterations,
    )

    out_dir = Path(args.out_dir or cfg.get("output", {}).get("dir", "fits"))
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = _stem(args.tsv)

    out_model = out_dir / f"{stem}.joblib"
    save_fit_bundle(bundle, str(out_model))
    print(f"Saved model: {out_model}")
    log(f"Saved model: {out_model}")

    text = fit_summary(bundle)
    out_summary = out_dir / f"{stem}_summary.txt"
    out_summary.write_text(text + "\n", encoding="utf-8")
    print(text)
    log(f"Saved summary: {out_summary}")

    plot = cfg.get("output", {}).get("plot", True) and not args.no_plot
    if plot:
        out_plot = out_dir / f"{stem}.png"
        _plot_fit(str(out_plot), obs, bundle, title=os.path.basename(args.tsv))
        print(f"Saved plot: {out_plot}")
        log(f"Saved plot: {out_plot}")
    return 0


def cmd_predict(args: argparse.Namespace, cfg: Dict[str, Any], log) -> int:
    if not os.path.exists(args.model_path):
        raise FileNotFoundError(f"Model file not found: {args.model_path}")
    bundle = load_fit_bundle(args.model_path)
    values = predict(bundle, np.asarray(args.t, dtype=float))
    for t, v in zip(args.t, values):
        print(f"{t:.9g}\t{v:.9g}")
    log(f"Predicted {len(args.t)} value(s) from {args.model_path}")
    return 0


def cmd_summary(args: argparse.Namespace, cfg: Dict[str, Any], log) -> int:
    if not os.path.exists(args.model_path):
        raise FileNotFoundError(f"Model file not found: {args.model_path}")
    print(fit_summary(load_fit_bundle(args.model_path)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="harmonic_fit_cli",
        description="Initial guess and least-squares fit of a*cos(omega*t + phi).",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config", default=None, help="TOML configuration file")
    p.add_argument(
        "--set",
        action="append",
        default=[],
        help="Override config key=value (repeatable).",
    )
    p.add_argument(
        "--dump-effective-config",
        action="store_true",
        help="Print final merged config and exit.",
    )
    p.add_argument(
        "--log-dir",
        default="logs",
        help="Directory where the run log will be created.",
    )
    sub = p.add_subparsers(dest="command")

    pg = sub.add_parser("guess", help="Print the initial guess for a TSV file")
    pg.add_argument("tsv", help="Input TSV path")
    pg.set_defaults(func=cmd_guess)

    pf = sub.add_parser(
        "fit",
        help="Fit the model and save bundle, summary and plot",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    pf.add_argument("tsv", help="Input TSV path")
    pf.add_argument("--out-dir", default=None, help="Output directory (default: [output].dir)")
    pf.add_argument(
        "--max-iterations", type=int, default=None, help="Optimizer evaluation budget"
    )
    pf.add_argument(
        "--start-point",
        default="",
        help="Explicit start point 'a,omega,phi' (skips the initial guess)",
    )
    pf.add_argument("--notes", default=None, help="Note saved into metadata")
    pf.add_argument("--no-plot", action="store_true", help="Do not write the PNG plot")
    pf.set_defaults(func=cmd_fit)

    pp = sub.add_parser("predict", help="Evaluate a saved fit")
    pp.add_argument("model_path", help="Path to a .joblib fit bundle")
    pp.add_argument("--t", type=float, nargs="+", required=True, help="Abscissa value(s)")
    pp.set_defaults(func=cmd_predict)

    ps = sub.add_parser("summary", help="Print the summary of a saved fit")
    ps.add_argument("model_path", help="Path to a .joblib fit bundle")
    ps.set_defaults(func=cmd_summary)

    return p


def _cli_overrides(args: argparse.Namespace) -> list:
    sets = list(args.set)
    if getattr(args, "max_iterations", None) is not None:
        sets.append(f"fit.max_iterations={args.max_iterations}")
    start = _parse_csv_floats(getattr(args, "start_point", ""))
    if start is not None:
        sets.append("fit.start_point=[" + ",".join(repr(v) for v in start) + "]")
    return sets


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_fit_config(args.config, _cli_overrides(args))
    except (ValueError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.dump_effective_config:
        print(dump_effective_config(cfg), end="")
        return 0
    if args.command is None:
        parser.error("a subcommand is required")

    log_path, log = _init_logger(args.log_dir)
    _log_header(log, args, cfg)
    try:
        rc = args.func(args, cfg, log)
    except (HarmonicGuessError, FitConvergenceError, ValueError, FileNotFoundError) as e:
        log(f"ERROR: {type(e).__name__}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    log(f"Run finished with status {rc}")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
