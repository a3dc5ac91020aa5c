"""
Tables for reading results side by side.

Pure formatting over results produced elsewhere; nothing is written to disk.
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from .calculator import compute_attenuation
from .models import AttenuationResult
from .scenarios import ScenarioFile
from .simulate import simulate_attenuation

LOG = logging.getLogger(__name__)

__all__ = ["category_table", "comparison_table", "format_table"]

COMPARISON_COLUMNS = [
    "scenario",
    "rho",
    "k",
    "factor_analytic",
    "factor_simulated",
    "factor_abs_diff",
    "corr_analytic",
    "corr_simulated",
    "corr_abs_diff",
    "n",
    "seed",
]


def category_table(result: AttenuationResult) -> pd.DataFrame:
    """One row per category: z-score bounds, label, mass and integral."""
    edges = (float("-inf"), *result.thresholds, float("inf"))
    k = len(result.labels)
    integrals = list(result.category_integrals) or [float("nan")] * k
    return pd.DataFrame(
        {
            "category": list(range(k)),
            "lower": list(edges[:-1]),
            "upper": list(edges[1:]),
            "label": list(result.labels),
            "probability": list(result.category_probabilities),
            "integral": integrals,
        }
    )


def comparison_table(
    config: ScenarioFile, *, n: Optional[int] = None, seed: Optional[int] = None
) -> pd.DataFrame:
    """
    Analytic vs simulated attenuation for every scenario in ``config``.

    ``n``/``seed`` override the file's simulation settings.
    """
    n_draws = int(n) if n is not None else config.simulation.n
    base_seed = int(seed) if seed is not None else config.simulation.seed
    rows = []
    for i, sc in enumerate(config.scenarios):
        taus = sc.resolved_thresholds()
        analytic = compute_attenuation(
            sc.rho,
            taus,
            sc.labels,
            latent_mean=sc.latent_mean,
            latent_sd=sc.latent_sd,
            tolerance=config.integration.tolerance,
            method=config.integration.method,
        )
        sim = simulate_attenuation(
            sc.rho,
            taus,
            sc.labels,
            n=n_draws,
            seed=base_seed + i,
            latent_mean=sc.latent_mean,
            latent_sd=sc.latent_sd,
        )
        LOG.info(
            "scenario %s: analytic factor=%.4f simulated=%.4f",
            sc.name, analytic.attenuation_factor, sim.attenuation_factor,
        )
        rows.append(
            {
                "scenario": sc.name,
                "rho": sc.rho,
                "k": len(taus) + 1,
                "factor_analytic": analytic.attenuation_factor,
                "factor_simulated": sim.attenuation_factor,
                "factor_abs_diff": abs(analytic.attenuation_factor - sim.attenuation_factor),
                "corr_analytic": analytic.attenuated_correlation,
                "corr_simulated": sim.observed_correlation,
                "corr_abs_diff": abs(analytic.attenuated_correlation - sim.observed_correlation),
                "n": sim.n,
                "seed": sim.seed,
            }
        )
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def format_table(df: pd.DataFrame, *, digits: int = 4) -> str:
    return df.to_string(index=False, float_format=lambda v: f"{v:.{digits}f}")
