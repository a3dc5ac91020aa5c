"""
Bivariate-normal partial-moment integrator.

Computes

    ∫∫_R  x^a · y^b · f(x, y; μx, μy, σx, σy, ρ)  dx dy,     a, b ∈ {0, 1}

over a rectangle R whose edges may be infinite. The default (a, b) = (1, 1)
is the truncated cross moment E(X·Y·1_R).

Both axes are standardized first, X = μx + σx·U and Y = μy + σy·V, so the
density mass always sits at the origin and QUADPACK's infinite-range
transformation sees a well-scaled integrand regardless of the means.

Methods
-------
conditional (default)
    Given V = v, U is N(ρv, 1-ρ²); its truncated zeroth and first moments
    over [ua, ub] are closed form:

        P(v)  = Φ(β) - Φ(α)
        M1(v) = ρv·P(v) - s·(φ(β) - φ(α))

    with s = sqrt(1-ρ²), α = (ua - ρv)/s, β = (ub - ρv)/s. The remaining
    integral over v is one adaptive Gauss–Kronrod quadrature
    (scipy.integrate.quad).

dblquad
    Nested adaptive quadrature of the full density (scipy.integrate.nquad).
    Slower; kept as an independent cross-check.

Non-convergence is never approximated: QUADPACK diagnostics and an explicit
evaluation budget are turned into IntegrationFailure.
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import Any, Callable, Literal, Optional

from scipy import integrate, special

from . import config as _config
from .errors import IntegrationFailure, InvalidParameters
from .models import BivariateNormalParams, IntegrationResult, Region

LOG = logging.getLogger(__name__)

Method = Literal["conditional", "dblquad"]
_METHODS: tuple[str, ...] = ("conditional", "dblquad")

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)

__all__ = [
    "Method",
    "integrate_bivariate_tail",
    "bivariate_partial_moment",
]


def _phi(z: float) -> float:
    if math.isinf(z):
        return 0.0
    return _INV_SQRT_2PI * math.exp(-0.5 * z * z)


def _require_tolerance(tolerance: Any) -> float:
    if tolerance is None:
        return float(_config.CONFIG.rel_tol)
    if isinstance(tolerance, bool):
        raise InvalidParameters(f"tolerance must be a number, got {tolerance!r}")
    try:
        tol = float(tolerance)
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"tolerance must be a number, got {tolerance!r}") from e
    if not math.isfinite(tol) or not (0.0 < tol < 1.0):
        raise InvalidParameters(f"tolerance must be finite and in (0, 1), got {tolerance!r}")
    return tol


def _require_moments(moments: Any) -> tuple[int, int]:
    try:
        a, b = moments
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"moments must be a pair (a, b), got {moments!r}") from e
    if a not in (0, 1) or b not in (0, 1) or isinstance(a, bool) or isinstance(b, bool):
        raise InvalidParameters(f"moments must be a pair with entries in {{0, 1}}, got {moments!r}")
    return int(a), int(b)


def _require_budget(max_evaluations: Any) -> int:
    if max_evaluations is None:
        return int(_config.CONFIG.max_evaluations)
    if isinstance(max_evaluations, bool) or not isinstance(max_evaluations, int) or max_evaluations < 1:
        raise InvalidParameters(f"max_evaluations must be an int >= 1, got {max_evaluations!r}")
    return max_evaluations


def _standardize(lo: float, hi: float, mean: float, sd: float) -> tuple[float, float]:
    return ((lo - mean) / sd, (hi - mean) / sd)


# =============================================================================
# Integrands (standardized coordinates)
# =============================================================================


def _conditional_integrand(
    params: BivariateNormalParams, u_bounds: tuple[float, float], a: int, b: int
) -> Callable[[float], float]:
    rho = params.rho
    s = math.sqrt(1.0 - rho * rho)
    ua, ub = u_bounds

    def g(v: float) -> float:
        c = rho * v
        alpha = (ua - c) / s
        beta = (ub - c) / s
        p = float(special.ndtr(beta) - special.ndtr(alpha))
        if a == 0:
            inner = p
        else:
            m1 = c * p - s * (_phi(beta) - _phi(alpha))
            inner = params.mean_x * p + params.sd_x * m1
        outer = 1.0 if b == 0 else params.mean_y + params.sd_y * v
        return outer * inner * _phi(v)

    return g


def _density_integrand(params: BivariateNormalParams, a: int, b: int) -> Callable[[float, float], float]:
    rho = params.rho
    one_minus = 1.0 - rho * rho
    norm = 1.0 / (2.0 * math.pi * math.sqrt(one_minus))

    def f(u: float, v: float) -> float:
        q = (u * u - 2.0 * rho * u * v + v * v) / one_minus
        dens = norm * math.exp(-0.5 * q)
        xf = 1.0 if a == 0 else params.mean_x + params.sd_x * u
        yf = 1.0 if b == 0 else params.mean_y + params.sd_y * v
        return xf * yf * dens

    return f


# =============================================================================
# Quadrature drivers
# =============================================================================


def _interval_mass(lo: float, hi: float) -> float:
    """Standard normal mass of [lo, hi], taken from the nearer tail."""
    if lo >= 0.0:
        return float(special.ndtr(-lo) - special.ndtr(-hi))
    return float(special.ndtr(hi) - special.ndtr(lo))


def _abs_floor(u_bounds: tuple[float, float], v_bounds: tuple[float, float], rel_tol: float) -> float:
    """
    Absolute error floor for one region.

    CONFIG.abs_tol caps the floor; a region carrying less mass than that
    gets ``rel_tol * mass`` so far-tail integrals still meet the relative
    target.
    """
    mass = min(_interval_mass(*u_bounds), _interval_mass(*v_bounds))
    return min(float(_config.CONFIG.abs_tol), rel_tol * mass)


def _run_conditional(
    params: BivariateNormalParams,
    u_bounds: tuple[float, float],
    v_bounds: tuple[float, float],
    a: int,
    b: int,
    rel_tol: float,
) -> tuple[float, float, int]:
    g = _conditional_integrand(params, u_bounds, a, b)
    epsabs = _abs_floor(u_bounds, v_bounds, rel_tol)
    out = integrate.quad(
        g,
        v_bounds[0],
        v_bounds[1],
        epsabs=epsabs,
        epsrel=rel_tol,
        limit=int(_config.CONFIG.max_subdivisions),
        full_output=1,
    )
    value, abserr, info = out[0], out[1], out[2]
    if len(out) > 3:
        raise IntegrationFailure(f"Quadrature did not converge: {out[3]} (estimate={value}, abserr={abserr})")
    return float(value), float(abserr), int(info["neval"])


def _run_dblquad(
    params: BivariateNormalParams,
    u_bounds: tuple[float, float],
    v_bounds: tuple[float, float],
    a: int,
    b: int,
    rel_tol: float,
) -> tuple[float, float, int]:
    f = _density_integrand(params, a, b)
    opts = {
        "epsabs": _abs_floor(u_bounds, v_bounds, rel_tol),
        "epsrel": rel_tol,
        "limit": int(_config.CONFIG.max_subdivisions),
    }
    with warnings.catch_warnings():
        warnings.simplefilter("error", integrate.IntegrationWarning)
        try:
            value, abserr, info = integrate.nquad(
                f, [list(u_bounds), list(v_bounds)], opts=[opts, opts], full_output=True
            )
        except integrate.IntegrationWarning as e:
            raise IntegrationFailure(f"Nested quadrature did not converge: {e}") from e
    return float(value), float(abserr), int(info["neval"])


_DRIVERS = {"conditional": _run_conditional, "dblquad": _run_dblquad}


def bivariate_partial_moment(
    region: Any,
    params: Any,
    tolerance: Optional[float] = None,
    *,
    moments: tuple[int, int] = (1, 1),
    method: Method = "conditional",
    max_evaluations: Optional[int] = None,
) -> IntegrationResult:
    """
    Integrate ``x^a · y^b`` against the bivariate normal density over ``region``.

    Args:
        region: Region or ((lo_x, hi_x), (lo_y, hi_y)); ±inf allowed.
        params: BivariateNormalParams, mapping of its fields, or a 5-sequence.
        tolerance: relative error target (default CONFIG.rel_tol).
        moments: (a, b) exponents in {0, 1}; (1, 1) is E(X·Y·1_R),
            (1, 0) is E(X·1_R), (0, 0) is P(R).
        method: "conditional" or "dblquad".
        max_evaluations: integrand evaluation budget (default CONFIG.max_evaluations).

    Raises:
        InvalidParameters: malformed params/region/tolerance, before integrating.
        IntegrationFailure: quadrature did not converge within budget.
    """
    p = BivariateNormalParams.coerce(params)
    r = Region.coerce(region)
    rel_tol = _require_tolerance(tolerance)
    a, b = _require_moments(moments)
    budget = _require_budget(max_evaluations)
    m = str(method).strip().lower()
    if m not in _METHODS:
        raise InvalidParameters(f"Unknown method {method!r}. Allowed: {list(_METHODS)}")

    if r.is_empty:
        return IntegrationResult(value=0.0, abserr=0.0, neval=0, method=m)

    u_bounds = _standardize(r.x[0], r.x[1], p.mean_x, p.sd_x)
    v_bounds = _standardize(r.y[0], r.y[1], p.mean_y, p.sd_y)

    value, abserr, neval = _DRIVERS[m](p, u_bounds, v_bounds, a, b, rel_tol)

    if neval > budget:
        raise IntegrationFailure(
            f"Evaluation budget exceeded: {neval} integrand evaluations > max_evaluations={budget} "
            f"(estimate={value}, abserr={abserr})"
        )
    if not math.isfinite(value):
        raise IntegrationFailure(f"Quadrature produced a non-finite value: {value}")

    if (a, b) == (1, 1) and r.is_full_plane:
        central = value - p.mean_x * p.mean_y
        bound = p.sd_x * p.sd_y
        if abs(central) > bound * (1.0 + 10.0 * rel_tol) + float(_config.CONFIG.abs_tol):
            _config.invariant(f"|E(XY) - μxμy| = {abs(central)} exceeds σxσy = {bound}")

    LOG.debug(
        "partial moment %s over x=%s y=%s (%s): value=%.12g abserr=%.3g neval=%d",
        (a, b), r.x, r.y, m, value, abserr, neval,
    )
    return IntegrationResult(value=value, abserr=abserr, neval=neval, method=m)


def integrate_bivariate_tail(
    region: Any,
    params: Any,
    tolerance: Optional[float] = None,
    *,
    moments: tuple[int, int] = (1, 1),
    method: Method = "conditional",
    max_evaluations: Optional[int] = None,
) -> float:
    """
    Value of ``∫∫_region x^a y^b f(x, y) dx dy`` (default the x·y moment).

    See ``bivariate_partial_moment`` for arguments and errors.
    """
    return bivariate_partial_moment(
        region,
        params,
        tolerance,
        moments=moments,
        method=method,
        max_evaluations=max_evaluations,
    ).value
