# tests/scripts/test_harmonic_fit_cli.py
"""
End-to-end tests for `scripts/harmonic_fit_cli.py`.

The script is imported by file path and driven through `main(argv)`. All
outputs (fits, plots, run logs) go under pytest's tmp_path; Matplotlib runs
on the headless "Agg" backend set by the script itself.
"""

from __future__ import annotations

import importlib.util as _importlib_util
import math
from pathlib import Path

import joblib
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[2]
_SCRIPT_PATH = _REPO_ROOT / "scripts" / "harmonic_fit_cli.py"

_spec = _importlib_util.spec_from_file_location("harmonic_fit_cli_loaded", _SCRIPT_PATH)
_cli = _importlib_util.module_from_spec(_spec)  # type: ignore[arg-type]
assert _spec and _spec.loader
_spec.loader.exec_module(_cli)  # type: ignore[union-attr]

main = _cli.main


@pytest.fixture
def samples_tsv(write_samples_tsv, harmonic_samples):
    obs = harmonic_samples(a=1.2, omega=0.8, phi=-0.4, t_max=20.0, n=80)
    return write_samples_tsv("wave.tsv", obs)


def _run(tmp_path: Path, *argv: str) -> int:
    return main(["--log-dir", str(tmp_path / "logs"), *argv])


def test_guess_prints_parameters(tmp_path, samples_tsv, capsys):
    assert _run(tmp_path, "guess", str(samples_tsv)) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("a=")
    fields = dict(tok.split("=") for tok in out.split())
    assert float(fields["a"]) == pytest.approx(1.2, rel=0.05)
    assert float(fields["omega"]) == pytest.approx(0.8, rel=0.05)
    logs = list((tmp_path / "logs").glob("run_*.log"))
    assert len(logs) == 1
    text = logs[0].read_text(encoding="utf-8")
    assert "Run started: guess" in text
    assert "[fit]" in text


def test_fit_writes_bundle_summary_and_plot(tmp_path, samples_tsv, capsys):
    out_dir = tmp_path / "out"
    rc = _run(tmp_path, "fit", str(samples_tsv), "--out-dir", str(out_dir), "--notes", "run-1")
    assert rc == 0
    assert (out_dir / "wave.joblib").is_file()
    assert (out_dir / "wave_summary.txt").is_file()
    assert (out_dir / "wave.png").is_file()

    payload = joblib.load(out_dir / "wave.joblib")
    a, omega, phi = payload["parameters"]
    assert a == pytest.approx(1.2, abs=1e-6)
    assert omega == pytest.approx(0.8, abs=1e-6)
    assert phi == pytest.approx(-0.4, abs=1e-6)
    assert payload["meta"]["notes"] == "run-1"
    assert payload["meta"]["max_iterations"] == 1000
    assert "Harmonic oscillator fit" in capsys.readouterr().out


def test_fit_respects_no_plot_and_config_output_dir(tmp_path, samples_tsv):
    out_dir = tmp_path / "from_cfg"
    cfg = tmp_path / "fit.toml"
    cfg.write_text(f'[output]\ndir = "{out_dir.as_posix()}"\n', encoding="utf-8")
    rc = _run(tmp_path, "--config", str(cfg), "fit", str(samples_tsv), "--no-plot")
    assert rc == 0
    assert (out_dir / "wave.joblib").is_file()
    assert not (out_dir / "wave.png").exists()


def test_fit_with_start_point_and_custom_columns(tmp_path, capsys):
    p = tmp_path / "custom.tsv"
    rows = ["time\tsignal"]
    rows += [f"{0.5 * i!r}\t{2.0 * math.cos(0.5 * i + 0.3)!r}" for i in range(12)]
    p.write_text("\n".join(rows) + "\n", encoding="utf-8")
    rc = _run(
        tmp_path,
        "--set", "input.x_column=time",
        "--set", "input.y_column=signal",
        "fit", str(p), "--out-dir", str(tmp_path / "o"),
        "--start-point", "2,1,0.3", "--no-plot",
    )
    assert rc == 0
    payload = joblib.load(tmp_path / "o" / "custom.joblib")
    assert payload["initial_guess"] == [2.0, 1.0, 0.3]


def test_predict_and_summary(tmp_path, samples_tsv, capsys):
    out_dir = tmp_path / "out"
    assert _run(tmp_path, "fit", str(samples_tsv), "--out-dir", str(out_dir), "--no-plot") == 0
    capsys.readouterr()

    model = str(out_dir / "wave.joblib")
    assert _run(tmp_path, "predict", model, "--t", "0", "1.5") == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    t0, v0 = map(float, lines[0].split("\t"))
    assert t0 == 0.0
    assert v0 == pytest.approx(1.2 * 0.9210609940028851, abs=1e-5)

    assert _run(tmp_path, "summary", model) == 0
    assert "omega (rad/unit t)" in capsys.readouterr().out


def test_too_few_rows_is_an_error(tmp_path, capsys):
    p = tmp_path / "short.tsv"
    p.write_text("x\ty\n0\t1\n1\t0\n2\t-1\n", encoding="utf-8")
    assert _run(tmp_path, "guess", str(p)) == 2
    err = capsys.readouterr().err
    assert err.startswith("error:")
    assert "at least 4" in err


def test_missing_input_is_an_error(tmp_path, capsys):
    assert _run(tmp_path, "fit", str(tmp_path / "nope.tsv")) == 2
    assert "not found" in capsys.readouterr().err


def test_invalid_override_is_an_error(tmp_path, samples_tsv, capsys):
    assert _run(tmp_path, "--set", "fit.max_iterations=0", "guess", str(samples_tsv)) == 2
    assert "max_iterations" in capsys.readouterr().err


def test_dump_effective_config(tmp_path, capsys):
    assert _run(tmp_path, "--set", "output.plot=false", "--dump-effective-config") == 0
    out = capsys.readouterr().out
    assert "[output]" in out
    assert "plot = false" in out
    assert not (tmp_path / "logs").exists()


def test_missing_subcommand_exits_with_usage(tmp_path):
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path)
    assert exc.value.code == 2
