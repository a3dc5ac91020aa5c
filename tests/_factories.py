"""Shared factories for test data construction."""

from __future__ import annotations

import math

from scipy import special

from attenuation.models import BivariateNormalParams

QNORM_30 = float(special.ndtri(0.3))
FOUR_CATEGORY_CUTS = (0.5, 0.8, 0.9)
FOUR_CATEGORY_THRESHOLDS = tuple(float(special.ndtri(p)) for p in FOUR_CATEGORY_CUTS)

# Closed-form references: cor(Y*, Y) = Σ_j (ℓ_{j+1} - ℓ_j) φ(τ_j) / sd(Y).
DICHOTOMOUS_FACTOR = 0.758731
FOUR_CATEGORY_FACTOR = 0.872020


def phi(z: float) -> float:
    return math.exp(-0.5 * z * z) / math.sqrt(2.0 * math.pi)


def Phi(z: float) -> float:
    return float(special.ndtr(z))


def mk_params(
    rho: float = 0.5,
    *,
    mean_x: float = 0.0,
    mean_y: float = 0.0,
    sd_x: float = 1.0,
    sd_y: float = 1.0,
) -> BivariateNormalParams:
    return BivariateNormalParams(mean_x=mean_x, mean_y=mean_y, sd_x=sd_x, sd_y=sd_y, rho=rho)
