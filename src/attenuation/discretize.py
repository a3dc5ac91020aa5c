"""
Threshold and category helpers.

Discretization is a single ordered search over a sorted threshold sequence:
a value ``v`` falls in category ``i`` when ``τ_{i-1} <= v < τ_i`` with
``τ_0 = -inf`` and ``τ_k = +inf``. Raw-unit thresholds are converted to
z-scores before anything touches the integrator.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
from scipy import special

from .errors import InvalidParameters, InvalidScheme

__all__ = [
    "validate_thresholds",
    "standardize_thresholds",
    "thresholds_from_cut_probabilities",
    "assign_categories",
]


def validate_thresholds(thresholds: Any) -> tuple[float, ...]:
    """
    Return thresholds as a tuple of floats, or raise InvalidScheme.

    ±inf is accepted (a scheme may put all mass in one category; the
    calculator reports that as DegenerateVariance). NaN is not.
    """
    if isinstance(thresholds, (str, bytes)) or not isinstance(thresholds, (Sequence, np.ndarray)):
        raise InvalidScheme(f"thresholds must be a sequence of numbers, got {type(thresholds).__name__}")
    out: list[float] = []
    for i, t in enumerate(thresholds):
        if isinstance(t, bool):
            raise InvalidScheme(f"thresholds[{i}] must be a number, got bool")
        try:
            tf = float(t)
        except (TypeError, ValueError) as e:
            raise InvalidScheme(f"thresholds[{i}] must be a number, got {t!r}") from e
        if math.isnan(tf):
            raise InvalidScheme(f"thresholds[{i}] is NaN")
        out.append(tf)
    if len(out) < 1:
        raise InvalidScheme("At least one threshold (two categories) is required")
    for i in range(len(out) - 1):
        if not out[i] < out[i + 1]:
            raise InvalidScheme(
                f"thresholds must be strictly increasing; thresholds[{i}]={out[i]} >= thresholds[{i + 1}]={out[i + 1]}"
            )
    return tuple(out)


def _require_location_scale(mean: Any, sd: Any) -> tuple[float, float]:
    try:
        m = float(mean)
        s = float(sd)
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"latent mean/sd must be numbers, got mean={mean!r}, sd={sd!r}") from e
    if not math.isfinite(m):
        raise InvalidParameters(f"latent mean must be finite, got {mean!r}")
    if not math.isfinite(s) or s <= 0.0:
        raise InvalidParameters(f"latent sd must be finite and > 0, got {sd!r}")
    return m, s


def standardize_thresholds(thresholds: Any, mean: float = 0.0, sd: float = 1.0) -> tuple[float, ...]:
    """Convert raw-unit thresholds to z-scores ``(τ - mean) / sd``."""
    m, s = _require_location_scale(mean, sd)
    taus = validate_thresholds(thresholds)
    if m == 0.0 and s == 1.0:
        return taus
    return tuple((t - m) / s for t in taus)


def thresholds_from_cut_probabilities(
    cut_probabilities: Any, mean: float = 0.0, sd: float = 1.0
) -> tuple[float, ...]:
    """
    Thresholds placing the given cumulative mass below each cut.

    ``[0.5, 0.8, 0.9]`` gives the 50/30/10/10 split. Probabilities must be
    strictly increasing in [0, 1]; 0 and 1 map to -inf and +inf.
    """
    if isinstance(cut_probabilities, (str, bytes)) or not isinstance(cut_probabilities, (Sequence, np.ndarray)):
        raise InvalidScheme("cut_probabilities must be a sequence of numbers")
    m, s = _require_location_scale(mean, sd)
    probs: list[float] = []
    for i, p in enumerate(cut_probabilities):
        try:
            pf = float(p)
        except (TypeError, ValueError) as e:
            raise InvalidScheme(f"cut_probabilities[{i}] must be a number, got {p!r}") from e
        if not (0.0 <= pf <= 1.0):
            raise InvalidScheme(f"cut_probabilities[{i}] must be in [0,1], got {p!r}")
        probs.append(pf)
    if len(probs) < 1:
        raise InvalidScheme("At least one cut probability is required")
    for i in range(len(probs) - 1):
        if not probs[i] < probs[i + 1]:
            raise InvalidScheme(f"cut_probabilities must be strictly increasing, got {probs!r}")
    z = special.ndtri(np.asarray(probs, dtype=float))
    return tuple(float(m + s * v) for v in z)


def assign_categories(values: Any, thresholds: Any) -> np.ndarray:
    """
    Map each value to its category index ``0..k-1``.

    A value equal to a threshold belongs to the upper category.
    """
    taus = np.asarray(validate_thresholds(thresholds), dtype=float)
    v = np.asarray(values, dtype=float)
    if np.any(np.isnan(v)):
        raise InvalidParameters("values contain NaN")
    return np.searchsorted(taus, v, side="right").astype(np.int64)
