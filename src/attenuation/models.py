"""
Value types shared by the integrator and the calculator.

All containers are frozen dataclasses validated on construction, so a
malformed parameter set is rejected before any numerical work starts.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from scipy import special

from . import config as _config
from .discretize import standardize_thresholds, thresholds_from_cut_probabilities, validate_thresholds
from .errors import InvalidParameters, InvalidScheme

__all__ = [
    "Interval",
    "BivariateNormalParams",
    "Region",
    "CategoryScheme",
    "IntegrationResult",
    "AttenuationResult",
]

Interval = tuple[float, float]

_INF = math.inf


def _finite(x: Any, name: str) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float, np.integer, np.floating)):
        raise InvalidParameters(f"{name} must be a finite number, got {x!r}")
    xf = float(x)
    if not math.isfinite(xf):
        raise InvalidParameters(f"{name} must be a finite number, got {x!r}")
    return xf


def _interval(bounds: Any, name: str) -> Interval:
    try:
        lo, hi = bounds
        lo_f, hi_f = float(lo), float(hi)
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"{name} must be a (lo, hi) pair of numbers, got {bounds!r}") from e
    if math.isnan(lo_f) or math.isnan(hi_f):
        raise InvalidParameters(f"{name} bounds must not be NaN, got {bounds!r}")
    if lo_f > hi_f:
        raise InvalidParameters(f"{name} requires lo <= hi, got lo={lo_f}, hi={hi_f}")
    return (lo_f, hi_f)


# =============================================================================
# Distribution parameters and integration regions
# =============================================================================


@dataclass(frozen=True, slots=True)
class BivariateNormalParams:
    """
    Joint latent distribution of (X, Y*).

    Invariants: all fields finite, sd_x > 0, sd_y > 0, -1 < rho < 1.
    """

    mean_x: float
    mean_y: float
    sd_x: float
    sd_y: float
    rho: float

    def __post_init__(self) -> None:
        for name in ("mean_x", "mean_y", "sd_x", "sd_y", "rho"):
            object.__setattr__(self, name, _finite(getattr(self, name), name))
        if self.sd_x <= 0.0:
            raise InvalidParameters(f"sd_x must be > 0, got {self.sd_x}")
        if self.sd_y <= 0.0:
            raise InvalidParameters(f"sd_y must be > 0, got {self.sd_y}")
        if not (-1.0 < self.rho < 1.0):
            raise InvalidParameters(f"rho must lie strictly inside (-1, 1), got {self.rho}")

    @classmethod
    def standard(cls, rho: float) -> "BivariateNormalParams":
        return cls(mean_x=0.0, mean_y=0.0, sd_x=1.0, sd_y=1.0, rho=rho)

    @classmethod
    def coerce(cls, obj: Any) -> "BivariateNormalParams":
        """Accept an instance, a mapping of field names, or a 5-sequence."""
        if isinstance(obj, cls):
            return obj
        if isinstance(obj, Mapping):
            unknown = set(obj) - {"mean_x", "mean_y", "sd_x", "sd_y", "rho"}
            if unknown:
                raise InvalidParameters(f"Unknown parameter names: {sorted(unknown)}")
            try:
                return cls(**obj)
            except TypeError as e:
                raise InvalidParameters(f"Incomplete parameters: {dict(obj)!r}") from e
        if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)) and len(obj) == 5:
            return cls(*obj)
        raise InvalidParameters(f"Cannot interpret {obj!r} as bivariate normal parameters")

    def swapped(self) -> "BivariateNormalParams":
        return BivariateNormalParams(self.mean_y, self.mean_x, self.sd_y, self.sd_x, self.rho)

    @property
    def covariance(self) -> float:
        return self.rho * self.sd_x * self.sd_y


@dataclass(frozen=True, slots=True)
class Region:
    """Rectangle ``x ∈ [lo_x, hi_x], y ∈ [lo_y, hi_y]``; endpoints may be ±inf."""

    x: Interval
    y: Interval

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", _interval(self.x, "x"))
        object.__setattr__(self, "y", _interval(self.y, "y"))

    @classmethod
    def full_plane(cls) -> "Region":
        return cls((-_INF, _INF), (-_INF, _INF))

    @classmethod
    def y_band(cls, lo: float, hi: float) -> "Region":
        """All of x, y restricted to [lo, hi] (one category of Y*)."""
        return cls((-_INF, _INF), (lo, hi))

    @classmethod
    def coerce(cls, obj: Any) -> "Region":
        if isinstance(obj, cls):
            return obj
        try:
            x, y = obj
        except (TypeError, ValueError) as e:
            raise InvalidParameters(f"Cannot interpret {obj!r} as a region ((lo_x, hi_x), (lo_y, hi_y))") from e
        return cls(x, y)

    def swapped(self) -> "Region":
        return Region(self.y, self.x)

    @property
    def is_empty(self) -> bool:
        return self.x[0] == self.x[1] or self.y[0] == self.y[1]

    @property
    def is_full_plane(self) -> bool:
        return self.x == (-_INF, _INF) and self.y == (-_INF, _INF)


# =============================================================================
# Category scheme
# =============================================================================


@dataclass(frozen=True, slots=True)
class CategoryScheme:
    """
    Ordered discretization of a standardized latent variable.

    ``thresholds`` are z-scores, strictly increasing; ``labels`` are the
    observed values of the ``k = len(thresholds) + 1`` categories
    (default ``0..k-1``).
    """

    thresholds: tuple[float, ...]
    labels: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        taus = validate_thresholds(self.thresholds)
        k = len(taus) + 1
        raw = self.labels if len(self.labels) else tuple(range(k))
        if len(raw) != k:
            raise InvalidScheme(f"Expected {k} labels for {k - 1} thresholds, got {len(raw)}")
        labels: list[float] = []
        for i, lab in enumerate(raw):
            if isinstance(lab, bool):
                raise InvalidScheme(f"labels[{i}] must be a number, got bool")
            try:
                lf = float(lab)
            except (TypeError, ValueError) as e:
                raise InvalidScheme(f"labels[{i}] must be a number, got {lab!r}") from e
            if not math.isfinite(lf):
                raise InvalidScheme(f"labels[{i}] must be finite, got {lab!r}")
            labels.append(lf)
        object.__setattr__(self, "thresholds", taus)
        object.__setattr__(self, "labels", tuple(labels))

    @classmethod
    def from_raw(
        cls,
        thresholds: Any,
        labels: Optional[Sequence[float]] = None,
        *,
        mean: float = 0.0,
        sd: float = 1.0,
    ) -> "CategoryScheme":
        """Build from thresholds on the latent variable's raw scale."""
        return cls(standardize_thresholds(thresholds, mean, sd), tuple(labels) if labels is not None else ())

    @classmethod
    def from_cut_probabilities(
        cls, cut_probabilities: Any, labels: Optional[Sequence[float]] = None
    ) -> "CategoryScheme":
        return cls(thresholds_from_cut_probabilities(cut_probabilities), tuple(labels) if labels is not None else ())

    @property
    def n_categories(self) -> int:
        return len(self.thresholds) + 1

    def bounds(self) -> Iterator[Interval]:
        edges = (-_INF, *self.thresholds, _INF)
        for i in range(self.n_categories):
            yield (edges[i], edges[i + 1])

    def probabilities(self) -> np.ndarray:
        """Standard normal mass of each category, each taken from its nearer tail."""
        edges = np.asarray((-_INF, *self.thresholds, _INF), dtype=float)
        lo, hi = edges[:-1], edges[1:]
        upper = lo >= 0.0
        p = np.where(upper, special.ndtr(-lo) - special.ndtr(-hi), special.ndtr(hi) - special.ndtr(lo))
        s = float(p.sum())
        if abs(s - 1.0) > float(_config.CONFIG.prob_tol):
            _config.invariant(f"Category probabilities sum to {s}, not 1 (thresholds={self.thresholds})")
        return p

    def mean(self) -> float:
        return float(np.dot(self.probabilities(), np.asarray(self.labels)))

    def variance(self) -> float:
        p = self.probabilities()
        lab = np.asarray(self.labels, dtype=float)
        ey = float(np.dot(p, lab))
        return float(np.dot(p, (lab - ey) ** 2))


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class IntegrationResult:
    """One quadrature: value, QUADPACK error estimate, integrand evaluations."""

    value: float
    abserr: float
    neval: int
    method: str


@dataclass(frozen=True)
class AttenuationResult:
    """Attenuation factor and attenuated correlation with diagnostics."""

    attenuation_factor: float
    attenuated_correlation: float
    rho: float = float("nan")
    thresholds: tuple[float, ...] = ()
    labels: tuple[float, ...] = ()
    category_probabilities: tuple[float, ...] = ()
    category_integrals: tuple[float, ...] = ()
    covariance: float = float("nan")
    discrete_variance: float = float("nan")
    method: str = "conditional"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (infinite thresholds as strings)."""

        def _num(x: float) -> Any:
            return x if math.isfinite(x) else str(x)

        return {
            "attenuation_factor": float(self.attenuation_factor),
            "attenuated_correlation": float(self.attenuated_correlation),
            "rho": float(self.rho),
            "thresholds": [_num(float(t)) for t in self.thresholds],
            "labels": [float(v) for v in self.labels],
            "category_probabilities": [float(p) for p in self.category_probabilities],
            "category_integrals": [float(v) for v in self.category_integrals],
            "covariance": float(self.covariance),
            "discrete_variance": float(self.discrete_variance),
            "method": self.method,
        }
