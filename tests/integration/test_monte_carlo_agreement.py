"""
Analytic attenuation vs simulated attenuation on the worked examples.

The fast tests use 10k draws and a loose tolerance; the slow tests use
enough draws that a 0.01 gap would be several standard errors.
"""

from __future__ import annotations

import pytest

from attenuation.calculator import compute_attenuation
from attenuation.simulate import simulate_attenuation

from tests._factories import FOUR_CATEGORY_THRESHOLDS, QNORM_30

CASES = [
    pytest.param(0.5, (QNORM_30,), (0, 1), id="dichotomous-30-70"),
    pytest.param(0.5, FOUR_CATEGORY_THRESHOLDS, (0, 1, 2, 3), id="four-category"),
    pytest.param(-0.3, (0.0,), None, id="median-split-negative"),
    pytest.param(0.8, (-1.0, 0.2, 1.5), (0, 2, 3.5, 10), id="uneven-labels"),
]


@pytest.mark.parametrize("rho,thresholds,labels", CASES)
def test_simulated_correlation_tracks_analytic(rho, thresholds, labels):
    analytic = compute_attenuation(rho, thresholds, labels)
    sim = simulate_attenuation(rho, thresholds, labels, n=10_000, seed=2024)
    assert sim.observed_correlation == pytest.approx(analytic.attenuated_correlation, abs=0.05)


@pytest.mark.slow
@pytest.mark.parametrize("rho,thresholds,labels", CASES[:2])
def test_simulated_factor_tracks_analytic_large_sample(rho, thresholds, labels):
    analytic = compute_attenuation(rho, thresholds, labels)
    sim = simulate_attenuation(rho, thresholds, labels, n=400_000, seed=99)
    assert sim.attenuation_factor == pytest.approx(analytic.attenuation_factor, abs=0.01)
    assert sim.observed_correlation == pytest.approx(analytic.attenuated_correlation, abs=0.01)
