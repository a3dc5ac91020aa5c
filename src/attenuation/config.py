"""
Numerical configuration and invariant policy.

A single frozen ``NumericsConfig`` instance (``CONFIG``) holds the tolerances
and budgets shared by the integrator and the calculator. It is replaced, never
mutated, by ``set_config``; tests and notebooks should prefer
``temporary_config`` so changes do not leak.

Invariant policy:
    - "raise": violations raise NumericalStabilityError (default)
    - "warn":  violations emit RuntimeWarning
    - "ignore": violations are ignored (exploratory scans only)
"""

from __future__ import annotations

import contextlib
import math
import warnings
from collections.abc import Iterator
from dataclasses import dataclass, fields
from typing import Any, Literal

from .errors import InvalidParameters, NumericalStabilityError

InvariantPolicy = Literal["raise", "warn", "ignore"]


@dataclass(frozen=True)
class NumericsConfig:
    """
    Global numerical configuration.

    rel_tol:
        Default relative error target for each quadrature.

    abs_tol:
        Absolute error floor; lets integrals that are exactly zero by symmetry
        terminate without chasing an unreachable relative target.

    max_subdivisions:
        QUADPACK subinterval limit per one-dimensional quadrature.

    max_evaluations:
        Budget of integrand evaluations per call. Exceeding it is an
        IntegrationFailure even if QUADPACK itself reported success.

    prob_tol:
        Category probabilities must sum to 1 within this tolerance.

    variance_floor:
        Var(Y) at or below this value is treated as degenerate.

    factor_tol:
        Slack allowed on the |attenuation factor| <= 1 invariant.
    """

    rel_tol: float = 1e-7
    abs_tol: float = 1e-10
    max_subdivisions: int = 200
    max_evaluations: int = 200_000
    prob_tol: float = 1e-9
    variance_floor: float = 1e-15
    factor_tol: float = 1e-6
    invariant_policy: InvariantPolicy = "raise"

    def __post_init__(self) -> None:
        for name in ("rel_tol", "abs_tol", "prob_tol", "variance_floor", "factor_tol"):
            v = getattr(self, name)
            if not isinstance(v, (int, float)) or not math.isfinite(float(v)) or float(v) < 0.0:
                raise InvalidParameters(f"{name} must be a finite number >= 0, got {v!r}")
        for name in ("max_subdivisions", "max_evaluations"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or v < 1:
                raise InvalidParameters(f"{name} must be an int >= 1, got {v!r}")
        pol = str(self.invariant_policy).strip().lower()
        if pol not in ("raise", "warn", "ignore"):
            raise InvalidParameters(f"Unknown invariant_policy={self.invariant_policy!r}")
        object.__setattr__(self, "invariant_policy", pol)


CONFIG = NumericsConfig()


def get_config() -> NumericsConfig:
    return CONFIG


def set_config(**kwargs: Any) -> None:
    """
    Update global CONFIG immutably.

    Example:
        set_config(rel_tol=1e-9, invariant_policy="warn")
    """
    global CONFIG
    allowed = {f.name for f in fields(NumericsConfig)}
    for k in kwargs:
        if k not in allowed:
            raise InvalidParameters(f"Unknown config field: {k!r}")
    new = {**CONFIG.__dict__, **kwargs}
    CONFIG = NumericsConfig(**new)


@contextlib.contextmanager
def temporary_config(**kwargs: Any) -> Iterator[NumericsConfig]:
    """
    Apply config changes for the duration of a ``with`` block.

    Example:
        with temporary_config(max_evaluations=50):
            ...
    """
    global CONFIG
    old = CONFIG
    set_config(**kwargs)
    try:
        yield CONFIG
    finally:
        CONFIG = old


def invariant(msg: str) -> None:
    """Handle an invariant violation according to CONFIG.invariant_policy."""
    pol = CONFIG.invariant_policy
    if pol == "ignore":
        return
    if pol == "warn":
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        return
    raise NumericalStabilityError(msg)


__all__ = [
    "InvariantPolicy",
    "NumericsConfig",
    "CONFIG",
    "get_config",
    "set_config",
    "temporary_config",
    "invariant",
]
