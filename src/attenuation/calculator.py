"""
Attenuation of a correlation when the latent Y* is cut into ordered categories.

With X and Y* standardized and jointly normal with correlation ρ, and
Y = ℓ_i whenever τ_{i-1} <= Y* < τ_i:

    Cov(X, Y)   = Σ_i ℓ_i · E(X · 1{Y* ∈ i})          (one integral per category)
    factor      = (Cov(X, Y) / ρ) · sqrt(Var(Y*) / Var(Y)),   Var(Y*) = 1
    cor(X, Y)   = factor · ρ

Var(Y) uses the discrete moments E(Y²) - E(Y)² of the category masses.
Raw-unit thresholds are standardized beforehand; the integrator only ever
sees (0, 0, 1, 1, ρ).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any, Optional

import numpy as np
from scipy import special

from . import config as _config
from .errors import DegenerateVariance, InvalidParameters, InvalidScheme
from .integrator import Method, bivariate_partial_moment
from .models import AttenuationResult, BivariateNormalParams, CategoryScheme, Region

LOG = logging.getLogger(__name__)

__all__ = [
    "category_probabilities",
    "discrete_moments",
    "compute_attenuation",
    "closed_form_attenuation",
    "dichotomous_attenuation",
]


def _require_rho(rho: Any) -> float:
    if isinstance(rho, bool):
        raise InvalidParameters("rho must be a number, got bool")
    try:
        r = float(rho)
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"rho must be a number, got {rho!r}") from e
    if not math.isfinite(r) or not (-1.0 < r < 1.0):
        raise InvalidParameters(f"rho must be finite and strictly inside (-1, 1), got {rho!r}")
    return r


def _scheme(
    thresholds: Any, category_labels: Optional[Sequence[float]], latent_mean: float, latent_sd: float
) -> CategoryScheme:
    return CategoryScheme.from_raw(thresholds, category_labels, mean=latent_mean, sd=latent_sd)


def category_probabilities(thresholds: Any) -> np.ndarray:
    """Standard normal mass of each category cut by z-score ``thresholds``."""
    return CategoryScheme(thresholds).probabilities()


def discrete_moments(probabilities: Any, labels: Any) -> tuple[float, float]:
    """
    Mean and variance of a discrete variable taking ``labels`` with ``probabilities``.

    Both moments are taken about the label of the most probable category;
    the variance is the two-pass sum Σ p·(ℓ - E(Y))².
    """
    p = np.asarray(probabilities, dtype=float)
    lab = np.asarray(labels, dtype=float)
    if p.ndim != 1 or p.shape != lab.shape:
        raise InvalidScheme(f"probabilities and labels must be 1-D of equal length, got {p.shape} and {lab.shape}")
    if not np.all(np.isfinite(p)) or np.any(p < 0.0):
        raise InvalidScheme(f"probabilities must be finite and >= 0, got {p.tolist()}")
    if abs(float(p.sum()) - 1.0) > float(_config.CONFIG.prob_tol):
        raise InvalidScheme(f"probabilities must sum to 1, got sum={float(p.sum())}")
    if not np.all(np.isfinite(lab)):
        raise InvalidScheme(f"labels must be finite, got {lab.tolist()}")
    ref = float(lab[int(np.argmax(p))])
    dev = lab - ref
    shift = float(np.dot(p, dev))
    var = float(np.dot(p, (dev - shift) ** 2))
    return ref + shift, var


def _require_variance(var_y: float, scheme: CategoryScheme) -> None:
    if not var_y > float(_config.CONFIG.variance_floor):
        raise DegenerateVariance(
            f"Var(Y)={var_y} for thresholds={scheme.thresholds}, labels={scheme.labels}: "
            "the discretized variable is (numerically) constant"
        )


def _check_factor(factor: float) -> None:
    if abs(factor) > 1.0 + float(_config.CONFIG.factor_tol):
        _config.invariant(f"|attenuation factor| = {abs(factor)} exceeds 1")


def compute_attenuation(
    rho: float,
    thresholds: Sequence[float],
    category_labels: Optional[Sequence[float]] = None,
    *,
    latent_mean: float = 0.0,
    latent_sd: float = 1.0,
    tolerance: Optional[float] = None,
    method: Method = "conditional",
) -> AttenuationResult:
    """
    Attenuation factor and attenuated correlation for a k-category cut of Y*.

    Args:
        rho: latent correlation between X and Y*.
        thresholds: k-1 strictly increasing cut points, in the units given by
            ``latent_mean``/``latent_sd`` (z-scores by default).
        category_labels: k observed values; default 0..k-1.
        latent_mean, latent_sd: location/scale of Y* the thresholds refer to.
        tolerance, method: forwarded to the integrator.

    Raises:
        InvalidParameters: rho outside (-1, 1), bad latent mean/sd.
        InvalidScheme: malformed thresholds or labels.
        DegenerateVariance: Var(Y) is zero (all mass in one category).
        IntegrationFailure: a category integral did not converge.
    """
    r = _require_rho(rho)
    scheme = _scheme(thresholds, category_labels, latent_mean, latent_sd)
    probs = scheme.probabilities()
    _, var_y = discrete_moments(probs, scheme.labels)
    _require_variance(var_y, scheme)

    params = BivariateNormalParams.standard(r)
    # At rho == 0 every E(X·1_i) vanishes; use E(X·1_i)/ρ = E(Y*·1_i) instead.
    moments = (1, 0) if r != 0.0 else (0, 1)
    integrals: list[float] = []
    for lo, hi in scheme.bounds():
        res = bivariate_partial_moment(Region.y_band(lo, hi), params, tolerance, moments=moments, method=method)
        integrals.append(res.value)

    # Σ_i I_i = 0 (E(X), or E(Y*) at ρ = 0), so shifting every label by the
    # modal category's label leaves Cov(X, Y) unchanged and drops that band.
    labels = np.asarray(scheme.labels, dtype=float)
    shifted = labels - labels[int(np.argmax(probs))]
    numerator = float(np.dot(shifted, np.asarray(integrals)))
    scaled = numerator / r if r != 0.0 else numerator
    factor = scaled * math.sqrt(1.0 / var_y)
    _check_factor(factor)

    covariance = numerator if r != 0.0 else 0.0
    LOG.debug(
        "attenuation rho=%.6g k=%d: Cov(X,Y)=%.10g Var(Y)=%.10g factor=%.10g",
        r, scheme.n_categories, covariance, var_y, factor,
    )
    return AttenuationResult(
        attenuation_factor=float(factor),
        attenuated_correlation=float(factor * r),
        rho=r,
        thresholds=scheme.thresholds,
        labels=scheme.labels,
        category_probabilities=tuple(float(x) for x in probs),
        category_integrals=tuple(integrals),
        covariance=float(covariance),
        discrete_variance=float(var_y),
        method=str(method).strip().lower(),
    )


def closed_form_attenuation(
    rho: float,
    thresholds: Sequence[float],
    category_labels: Optional[Sequence[float]] = None,
    *,
    latent_mean: float = 0.0,
    latent_sd: float = 1.0,
) -> AttenuationResult:
    """
    Same quantity without quadrature.

    Cov(Y*, Y) = Σ_j (ℓ_{j+1} - ℓ_j) · φ(τ_j), so the factor is
    Cov(Y*, Y) / sd(Y). Used to cross-check the integrator path.
    """
    r = _require_rho(rho)
    scheme = _scheme(thresholds, category_labels, latent_mean, latent_sd)
    probs = scheme.probabilities()
    _, var_y = discrete_moments(probs, scheme.labels)
    _require_variance(var_y, scheme)

    taus = np.asarray(scheme.thresholds, dtype=float)
    dens = np.where(np.isfinite(taus), np.exp(-0.5 * np.where(np.isfinite(taus), taus, 0.0) ** 2), 0.0)
    dens = dens / math.sqrt(2.0 * math.pi)
    steps = np.diff(np.asarray(scheme.labels, dtype=float))
    cov_latent = float(np.dot(steps, dens))
    factor = cov_latent / math.sqrt(var_y)
    _check_factor(factor)
    return AttenuationResult(
        attenuation_factor=factor,
        attenuated_correlation=factor * r,
        rho=r,
        thresholds=scheme.thresholds,
        labels=scheme.labels,
        category_probabilities=tuple(float(x) for x in probs),
        category_integrals=(),
        covariance=cov_latent * r,
        discrete_variance=var_y,
        method="closed_form",
    )


def dichotomous_attenuation(rho: float, threshold: float) -> AttenuationResult:
    """
    Two categories (labels 0, 1) split at the z-score ``threshold``.

    factor = φ(τ) / sqrt(p(1 - p)),  p = P(Y* >= τ)
    """
    r = _require_rho(rho)
    tau = float(threshold)
    if math.isnan(tau):
        raise InvalidScheme("threshold is NaN")
    p = float(special.ndtr(-tau))
    var_y = p * (1.0 - p)
    scheme = CategoryScheme((tau,))
    _require_variance(var_y, scheme)
    dens = math.exp(-0.5 * tau * tau) / math.sqrt(2.0 * math.pi)
    factor = dens / math.sqrt(var_y)
    return AttenuationResult(
        attenuation_factor=factor,
        attenuated_correlation=factor * r,
        rho=r,
        thresholds=(tau,),
        labels=(0.0, 1.0),
        category_probabilities=(1.0 - p, p),
        covariance=dens * r,
        discrete_variance=var_y,
        method="dichotomous",
    )
