import numpy as np
import pytest

from harmonic_fit.fitting.harmonic import (
    HarmonicOscillator,
    harmonic_gradient,
    harmonic_value,
    validate_parameters,
)


def test_value_matches_closed_form():
    t = np.array([0.0, 0.25, 1.0, 2.0])
    np.testing.assert_allclose(
        harmonic_value(t, 2.0, 3.0, -0.5), 2.0 * np.cos(3.0 * t - 0.5)
    )


def test_gradient_matches_finite_differences():
    t = np.linspace(-2.0, 4.0, 13)
    p = np.array([1.3, 0.8, 0.4])
    jac = harmonic_gradient(t, *p)
    assert jac.shape == (t.size, 3)
    h = 1e-6
    for k in range(3):
        dp = np.zeros(3)
        dp[k] = h
        fd = (harmonic_value(t, *(p + dp)) - harmonic_value(t, *(p - dp))) / (2 * h)
        np.testing.assert_allclose(jac[:, k], fd, rtol=1e-6, atol=1e-8)


def test_gradient_scalar_input_is_one_row():
    assert harmonic_gradient(0.5, 1.0, 2.0, 0.0).shape == (1, 3)


def test_oscillator_call_derivative_and_parameters():
    osc = HarmonicOscillator(2.0, 1.5, 0.3)
    t = np.linspace(0.0, 5.0, 11)
    np.testing.assert_allclose(osc(t), 2.0 * np.cos(1.5 * t + 0.3))
    np.testing.assert_allclose(osc.derivative(t), -3.0 * np.sin(1.5 * t + 0.3))
    np.testing.assert_array_equal(osc.parameters, [2.0, 1.5, 0.3])
    d = osc.describe()
    assert d["type"] == "harmonic"
    assert d["omega"] == 1.5


def test_from_parameters_roundtrip_and_validation():
    osc = HarmonicOscillator.from_parameters([0.5, 2.0, -1.0])
    assert (osc.amplitude, osc.omega, osc.phase) == (0.5, 2.0, -1.0)
    with pytest.raises(ValueError):
        HarmonicOscillator.from_parameters([1.0, 2.0])
    with pytest.raises(ValueError):
        validate_parameters([1.0, 2.0, 3.0, 4.0])
